from typing import Any, List, Optional

from pydantic import BaseModel


class ApiResponse(BaseModel):
    """Envelope returned by every resume endpoint."""

    success: bool
    message: Optional[str] = None
    data: Any = None
    errors: Optional[List[Any]] = None

    @classmethod
    def ok(cls, data: Any, message: str = "Success") -> "ApiResponse":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str, errors: Optional[List[Any]] = None) -> "ApiResponse":
        return cls(success=False, message=message, data=None, errors=errors)
