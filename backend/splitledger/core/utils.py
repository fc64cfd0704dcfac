"""
Utility functions for the application.
"""
from typing import Any, Dict
from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """Coerce a number to a Decimal rounded half-up to cents."""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def format_response(data: Any, message: str = "Success") -> Dict[str, Any]:
    """Format API response."""
    return {
        "message": message,
        "data": data
    }


def format_error(status_code: int, message: str, details: Any = None) -> Dict[str, Any]:
    """Format error response."""
    response = {"status": status_code, "message": message}
    if details:
        response["details"] = details
    return response
