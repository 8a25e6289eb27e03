from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz(request: Request) -> dict[str, str | int]:
    """Liveness plus a view of the in-process delivery state."""
    return {
        "status": "ok",
        "live_connections": len(request.app.state.registry),
        "pending_pushes": request.app.state.fanout.pending,
    }


async def _probe_store(request: Request) -> str | None:
    try:
        async with request.app.state.session_factory() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:  # noqa: BLE001
        return f"message store: {exc}"
    return None


@router.get("/readyz")
async def readyz(request: Request) -> JSONResponse:
    problem = await _probe_store(request)
    if problem is not None:
        return JSONResponse(status_code=503, content={"status": "unavailable", "errors": [problem]})
    return JSONResponse(content={"status": "ready"})
