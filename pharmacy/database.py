import asyncio
from typing import Dict, List

# In-memory sheets for the stand-in store: sheet id -> rows.
# Every cell is kept as text, the way a spreadsheet hands it back.

SHEETS: Dict[str, List[Dict[str, str]]] = {}
_LOCKS: Dict[str, asyncio.Lock] = {}

def _get_lock(key: str) -> asyncio.Lock:
    if key not in _LOCKS:
        _LOCKS[key] = asyncio.Lock()
    return _LOCKS[key]

def _get_sheet(sheet_id: str) -> List[Dict[str, str]]:
    return SHEETS.setdefault(sheet_id, [])
