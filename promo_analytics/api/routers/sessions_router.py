"""Client session id issuance"""

import secrets
import time

from fastapi import APIRouter
from pydantic import BaseModel

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


class SessionStartResponse(BaseModel):
    session_id: str


def new_session_id() -> str:
    """Random hex followed by the millisecond clock in hex; nothing is persisted."""
    return secrets.token_hex(8) + format(time.time_ns() // 1_000_000, "x")


@router.post("/start", response_model=SessionStartResponse)
async def start_session() -> SessionStartResponse:
    return SessionStartResponse(session_id=new_session_id())
