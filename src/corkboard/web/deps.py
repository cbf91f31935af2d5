"""FastAPI dependency injection."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

import aiosqlite
import jwt
from fastapi import Depends, HTTPException, Request

from .db.database import get_db


async def _get_db() -> aiosqlite.Connection:
    return await get_db()


Db = Annotated[aiosqlite.Connection, Depends(_get_db)]


def _get_now() -> datetime:
    return datetime.now(UTC)


Now = Annotated[datetime, Depends(_get_now)]


async def _get_current_user(request: Request, db: Db) -> dict:
    """Extract and validate JWT from Authorization header.

    Also verifies the user still exists in the DB.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid Authorization header")

    token = auth_header.removeprefix("Bearer ").strip()
    try:
        from .auth.service import decode_token

        payload = decode_token(token)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired") from None
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token") from None

    cursor = await db.execute("SELECT id FROM users WHERE id = ?", (payload.get("sub"),))
    if not await cursor.fetchone():
        raise HTTPException(status_code=401, detail="User not found. Please log in again.")

    return payload


CurrentUser = Annotated[dict, Depends(_get_current_user)]
