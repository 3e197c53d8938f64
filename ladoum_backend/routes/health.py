import sqlite3
from fastapi import APIRouter
from ..db import conn

router = APIRouter()

@router.get("/health")
def health():
    """Liveness plus a trivial query against the event store"""
    try:
        conn.execute("SELECT 1").fetchone()
        return {"status": "ok", "database": "ok"}
    except sqlite3.Error as e:
        return {"status": "degraded", "database": str(e)}
