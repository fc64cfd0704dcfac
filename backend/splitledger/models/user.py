"""
User model for authentication and bill ownership.
"""
from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship
from splitledger.db.base import BaseModel


class User(BaseModel):
    """Registered user. The id is the identity carried by access tokens."""
    __tablename__ = "users"

    name = Column(String(100), nullable=False)
    email = Column(String(100), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    bills = relationship("Bill", back_populates="creator")
    participations = relationship("BillParticipant", back_populates="user")
