from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.params import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from crossdict.auth.access_scope import PendingAccess, get_pending_access
from crossdict.database.setup import get_db
from crossdict.repositories.pending_repository import (GetPendingRepository, GetPendingCountRepository,
                                                       SavePendingRepository, ApprovePendingRepository,
                                                       RejectPendingRepository)
from crossdict.schemas.pending_schema import (PendingEditSchema, PendingWordResponse, PendingCountResponse,
                                              ActionResponse)
from crossdict.tasks.pending_cleanup import PendingRetentionSweeper, get_pending_sweeper

router = APIRouter()

from crossdict.logging_config import setup_logger
logger = setup_logger(__name__, "pending.log")


@router.get("", response_model=List[PendingWordResponse])
async def get_pending(
        locale: Optional[str] = Query(None, description="Locale of the moderation page"),
        access: PendingAccess = Depends(get_pending_access),
        db: AsyncSession = Depends(get_db)
):
    try:
        repo = GetPendingRepository(db, access, locale=locale)
        return await repo.get_pending()
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error fetching pending cards: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/count", response_model=PendingCountResponse)
async def get_pending_count(
        access: PendingAccess = Depends(get_pending_access),
        db: AsyncSession = Depends(get_db)
):
    try:
        repo = GetPendingCountRepository(db)
        return await repo.get_counts()
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error counting pending cards: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/{pending_id}/save", response_model=ActionResponse)
async def save_pending(
        pending_id: str,
        data: PendingEditSchema,
        access: PendingAccess = Depends(get_pending_access),
        db: AsyncSession = Depends(get_db)
):
    try:
        repo = SavePendingRepository(db, access, pending_id, data)
        await repo.save()
        return {"success": True}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error saving pending {pending_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/{pending_id}/approve", response_model=ActionResponse)
async def approve_pending(
        pending_id: str,
        access: PendingAccess = Depends(get_pending_access),
        sweeper: PendingRetentionSweeper = Depends(get_pending_sweeper),
        db: AsyncSession = Depends(get_db)
):
    try:
        repo = ApprovePendingRepository(db, access, pending_id, sweeper=sweeper)
        await repo.approve()
        return {"success": True}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error approving pending {pending_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/{pending_id}/reject", response_model=ActionResponse)
async def reject_pending(
        pending_id: str,
        access: PendingAccess = Depends(get_pending_access),
        sweeper: PendingRetentionSweeper = Depends(get_pending_sweeper),
        db: AsyncSession = Depends(get_db)
):
    try:
        repo = RejectPendingRepository(db, access, pending_id, sweeper=sweeper)
        await repo.reject()
        return {"success": True}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error rejecting pending {pending_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")
