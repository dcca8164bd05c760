from fastapi import APIRouter, HTTPException
from fastapi.params import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from crossdict.auth.access_scope import Principal, get_principal
from crossdict.database.setup import get_db
from crossdict.repositories.submission_repository import SubmissionRepository
from crossdict.schemas.pending_schema import (NewWordSubmissionSchema, DefinitionSubmissionSchema,
                                              WordRenameSchema, DefinitionEditSchema, SubmissionCreatedResponse)

router = APIRouter()

from crossdict.logging_config import setup_logger
logger = setup_logger(__name__, "pending.log")


@router.post("/create-new", response_model=SubmissionCreatedResponse, status_code=201)
async def create_new_word(
        data: NewWordSubmissionSchema,
        principal: Principal = Depends(get_principal),
        db: AsyncSession = Depends(get_db)
):
    try:
        repo = SubmissionRepository(db, principal)
        pending_id = await repo.create_new_word(data)
        return {"success": True, "id": pending_id}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error submitting new word: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/create", response_model=SubmissionCreatedResponse, status_code=201)
async def create_definition(
        data: DefinitionSubmissionSchema,
        principal: Principal = Depends(get_principal),
        db: AsyncSession = Depends(get_db)
):
    try:
        repo = SubmissionRepository(db, principal)
        pending_id = await repo.add_definition(data)
        return {"success": True, "id": pending_id}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error submitting definition for word {data.word_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/word/{word_id}", response_model=SubmissionCreatedResponse)
async def request_word_rename(
        word_id: str,
        data: WordRenameSchema,
        principal: Principal = Depends(get_principal),
        db: AsyncSession = Depends(get_db)
):
    try:
        repo = SubmissionRepository(db, principal)
        pending_id = await repo.request_word_rename(word_id, data)
        return {"success": True, "id": pending_id}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error requesting rename of word {word_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/definition/{opred_id}", response_model=SubmissionCreatedResponse)
async def request_definition_edit(
        opred_id: str,
        data: DefinitionEditSchema,
        principal: Principal = Depends(get_principal),
        db: AsyncSession = Depends(get_db)
):
    try:
        repo = SubmissionRepository(db, principal)
        pending_id = await repo.request_definition_edit(opred_id, data)
        return {"success": True, "id": pending_id}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error requesting edit of definition {opred_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")
