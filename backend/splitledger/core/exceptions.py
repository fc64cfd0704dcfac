"""
Error kinds raised by services and routes.

Each one is an HTTPException so FastAPI maps it to its status code; the
handlers in main.py render all of them as a {status, message} envelope.
"""
from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """Referenced bill, item, split, participant or user does not exist."""

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ForbiddenError(HTTPException):
    """Caller is neither creator nor an authorized participant."""

    def __init__(self, detail: str = "Access denied"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class InvalidInputError(HTTPException):
    """Malformed id, missing field or invalid status value."""

    def __init__(self, detail: str = "Invalid input"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class UnauthorizedError(HTTPException):
    """Missing or invalid bearer credential."""

    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"}
        )
