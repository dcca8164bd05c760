from datetime import datetime, timezone

from fastapi import APIRouter

router = APIRouter()


@router.get("/healthz")
async def health_check():
    """Liveness probe for container healthchecks; does not touch the database"""
    return {"ok": True, "timestamp": datetime.now(timezone.utc).isoformat()}
