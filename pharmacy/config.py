"""Runtime configuration, read from the environment (and a local .env file)."""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_SHEETDB_URL = "http://127.0.0.1:8085/api/v1/pharmacy"


def _env_string(name: str, default: Optional[str] = None) -> Optional[str]:
    """Return trimmed string-valued env vars, normalizing empty strings to the default."""
    raw = os.getenv(name)
    if raw is None:
        return default
    clean = raw.strip()
    return clean if clean else default


def _env_float(name: str, default: float) -> float:
    raw = _env_string(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if 0 < value < float("inf") else default


@dataclass(frozen=True)
class Settings:
    sheetdb_url: str = DEFAULT_SHEETDB_URL
    api_key: Optional[str] = None
    timeout: float = 10.0
    currency_symbol: str = "₹"
    store_header: str = "Pharmacy Invoice"
    printer_name: Optional[str] = None
    push_stock: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        if dotenv:
            load_dotenv()
        return cls(
            sheetdb_url=_env_string("SHEETDB_URL", DEFAULT_SHEETDB_URL),
            api_key=_env_string("SHEETDB_API_KEY"),
            timeout=_env_float("SHEETDB_TIMEOUT", 10.0),
            currency_symbol=_env_string("PHARMACY_CURRENCY_SYMBOL", "₹"),
            store_header=_env_string("PHARMACY_STORE_HEADER", "Pharmacy Invoice"),
            printer_name=_env_string("PHARMACY_PRINTER"),
            push_stock=_env_string("PHARMACY_PUSH_STOCK", "0") == "1",
            log_level=(_env_string("PHARMACY_LOG_LEVEL", "INFO")).upper(),
        )
