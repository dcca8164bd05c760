from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from crossdict.auth.access_scope import PendingAccess, get_pending_access
from crossdict.tasks.pending_cleanup import PendingRetentionSweeper, get_pending_sweeper

router = APIRouter()


@router.get("/pending-cleanup/status")
async def get_cleanup_status(
        access: PendingAccess = Depends(get_pending_access),
        sweeper: PendingRetentionSweeper = Depends(get_pending_sweeper)
):
    """Get detailed status of the pending retention sweeper"""
    access.require_moderator()
    status = sweeper.get_status()
    status["server_time_utc"] = datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S UTC')
    return status


@router.post("/pending-cleanup/run-now")
async def run_cleanup_now(
        access: PendingAccess = Depends(get_pending_access),
        sweeper: PendingRetentionSweeper = Depends(get_pending_sweeper)
):
    """Manually trigger a sweep, ignoring the interval"""
    access.require_moderator()

    start_time = datetime.now(timezone.utc)
    deleted = await sweeper.run_now()
    duration = (datetime.now(timezone.utc) - start_time).total_seconds()

    return {
        "success": sweeper.last_error is None,
        "message": f"Cleanup completed in {duration:.2f} seconds" if sweeper.last_error is None
        else f"Cleanup failed: {sweeper.last_error}",
        "deleted_count": deleted,
        "run_time": start_time.strftime('%Y-%m-%d %H:%M:%S'),
        "duration_seconds": round(duration, 2),
        "total_deleted": sweeper.total_deleted,
        "total_runs": sweeper.run_count
    }
