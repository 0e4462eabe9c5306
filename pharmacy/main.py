# pharmacy/main.py
"""SheetDB-compatible stand-in for the remote store, for local runs and tests."""
import os
from typing import Any, Dict, List, Union

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .database import SHEETS, _LOCKS, _get_lock, _get_sheet

app = FastAPI(title="sheet-store (in-memory stand-in)")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------
# Pydantic schemas
# ---------------------------
class RowsIn(BaseModel):
    data: Union[Dict[str, Any], List[Dict[str, Any]]]

class RowUpdateIn(BaseModel):
    data: Dict[str, Any]

# ---------------------------
# Helpers
# ---------------------------
def _as_cells(row: Dict[str, Any]) -> Dict[str, str]:
    return {str(k): "" if v is None else str(v) for k, v in row.items()}

def _matching(rows: List[Dict[str, str]], row_id: str) -> List[Dict[str, str]]:
    return [r for r in rows if r.get("id") == row_id]

# ---------------------------
# Sheet endpoints
# ---------------------------
@app.get("/api/v1/{sheet_id}")
async def list_rows(sheet_id: str):
    return {"data": list(_get_sheet(sheet_id))}

@app.post("/api/v1/{sheet_id}", status_code=201)
async def create_rows(sheet_id: str, payload: RowsIn):
    rows = payload.data if isinstance(payload.data, list) else [payload.data]
    async with _get_lock(f"sheet:{sheet_id}"):
        sheet = _get_sheet(sheet_id)
        sheet.extend(_as_cells(r) for r in rows)
    return {"created": len(rows)}

@app.patch("/api/v1/{sheet_id}/id/{row_id}")
async def update_row(sheet_id: str, row_id: str, payload: RowUpdateIn):
    async with _get_lock(f"sheet:{sheet_id}"):
        matches = _matching(_get_sheet(sheet_id), row_id)
        if not matches:
            raise HTTPException(status_code=404, detail="row not found")
        for r in matches:
            r.update(_as_cells(payload.data))
    return {"updated": len(matches)}

@app.delete("/api/v1/{sheet_id}/id/{row_id}")
async def delete_row(sheet_id: str, row_id: str):
    async with _get_lock(f"sheet:{sheet_id}"):
        sheet = _get_sheet(sheet_id)
        keep = [r for r in sheet if r.get("id") != row_id]
        deleted = len(sheet) - len(keep)
        if not deleted:
            raise HTTPException(status_code=404, detail="row not found")
        sheet[:] = keep
    return {"deleted": deleted}

# ---------------------------
# Utility: reset (for tests/demo)
# ---------------------------
@app.post("/api/v1/{sheet_id}/reset")
async def reset_sheet(sheet_id: str):
    SHEETS.pop(sheet_id, None)
    _LOCKS.pop(f"sheet:{sheet_id}", None)
    return {"status": "reset"}

@app.get("/health")
async def health():
    return {"status": "ok", "sheets": len(SHEETS)}


def run(host: str = "127.0.0.1", port: int = 8085):
    import uvicorn
    uvicorn.run(app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    run(os.getenv("STORE_HOST", "127.0.0.1"), int(os.getenv("STORE_PORT", "8085")))
