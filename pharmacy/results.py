from dataclasses import dataclass
from typing import Any, Optional

from .errors import PharmacyError


@dataclass(frozen=True)
class Outcome:
    """Result of a service operation: either a value or the error that stopped it."""

    ok: bool
    value: Any = None
    error: Optional[PharmacyError] = None
    message: str = ""

    @classmethod
    def success(cls, value: Any = None, message: str = "") -> "Outcome":
        return cls(ok=True, value=value, message=message)

    @classmethod
    def failure(cls, error: PharmacyError, message: Optional[str] = None) -> "Outcome":
        return cls(ok=False, error=error, message=message if message is not None else str(error))
