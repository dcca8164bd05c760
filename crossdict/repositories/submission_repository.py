import re
from typing import Optional, List, Union

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from crossdict.auth.access_scope import Principal
from crossdict.constants.pending import PendingStatus
from crossdict.logging_config import setup_logger
from crossdict.models.dictionary_model import Word, Definition
from crossdict.models.language_model import Language
from crossdict.models.pending_model import PendingWord, PendingDescription
from crossdict.repositories.pending_repository import parse_pending_id
from crossdict.schemas.note_payload import (NewWordNote, EditWordNote, EditDefinitionNote, AddDefinitionNote,
                                            dump_note)
from crossdict.schemas.pending_schema import (NewWordSubmissionSchema, DefinitionSubmissionSchema,
                                              WordRenameSchema, DefinitionEditSchema, DefinitionDraftSchema)
from crossdict.services.view_cache import revalidate_pending_views

logger = setup_logger(__name__, "pending.log")

_LETTERS_ONLY = re.compile(r"^[^\W\d_]+$")


def normalize_word(text: str) -> str:
    """Drop every whitespace character and lowercase; no other substitutions."""
    return re.sub(r"\s+", "", text or "").lower()


def draft_note(note_text: Optional[str], tags: Optional[List[int]], difficulty: Optional[int] = None) -> str:
    """Note of a submitted description: tags, free text and difficulty when present, else empty."""
    text = (note_text or "").strip()
    fields = {}
    if tags:
        fields["tags"] = tags
    if text:
        fields["text"] = text
    if not fields:
        return ""
    if difficulty is not None:
        fields["difficulty"] = difficulty
    return dump_note(NewWordNote(**fields))


class SubmissionRepository:
    """Creates PENDING cards on behalf of an authenticated contributor."""

    def __init__(self, db: AsyncSession, principal: Principal):
        self.db = db
        self.principal = principal

    async def _find_language(self, code: str) -> Language:
        result = await self.db.execute(select(Language).where(Language.code == code.strip().lower()))
        lang = result.scalar_one_or_none()
        if lang is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Language not found")
        return lang

    async def _save(self, pending: PendingWord) -> str:
        try:
            self.db.add(pending)
            await self.db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Could not store pending card for {self.principal.label}: {str(e)}")
            await self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Database error occurred"
            )
        logger.info(f"Pending card {pending.id} submitted by {self.principal.label}")
        revalidate_pending_views()
        return str(pending.id)

    def _description(self, draft: DefinitionDraftSchema, lang_id: int) -> Optional[PendingDescription]:
        text = draft.definition.strip()
        if not text:
            return None
        return PendingDescription(
            description=text,
            note=draft_note(draft.note, draft.tags, draft.difficulty),
            difficulty=draft.difficulty if draft.difficulty is not None else 1,
            end_date=draft.end_date,
            lang_id=lang_id,
            create_by=self.principal.numeric_id,
        )

    async def create_new_word(self, data: NewWordSubmissionSchema) -> str:
        normalized = normalize_word(data.word)
        if not normalized:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty word")
        if not _LETTERS_ONLY.match(normalized):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Word must contain letters only")

        existing = await self.db.execute(
            select(Word.id).where(Word.word_text == normalized, Word.is_deleted.is_(False)).limit(1)
        )
        if existing.scalar_one_or_none() is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Word already exists")

        lang = await self._find_language(data.language)

        descriptions = [d for d in (self._description(draft, lang.id) for draft in data.definition_drafts()) if d]
        if not descriptions:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Definition is required")

        pending = PendingWord(
            word_text=normalized,
            length=len(normalized),
            lang_id=lang.id,
            note=dump_note(NewWordNote(kind="newWord", created_by=self.principal.label)),
            create_by=self.principal.numeric_id,
            descriptions=descriptions,
        )
        return await self._save(pending)

    async def _get_word(self, word_id: Union[str, int]) -> Word:
        word = await self.db.get(Word, parse_pending_id(word_id))
        if word is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Word not found")
        return word

    async def add_definition(self, data: DefinitionSubmissionSchema) -> str:
        word = await self._get_word(data.word_id)
        lang = await self._find_language(data.language)

        pending = PendingWord(
            word_text=word.word_text,
            length=word.length,
            lang_id=lang.id,
            note=dump_note(AddDefinitionNote(created_by=self.principal.label)),
            target_word_id=word.id,
            create_by=self.principal.numeric_id,
            descriptions=[PendingDescription(
                description=data.definition.strip(),
                note=draft_note(data.note, data.tags),
                lang_id=lang.id,
                create_by=self.principal.numeric_id,
            )],
        )
        return await self._save(pending)

    async def request_word_rename(self, word_id: Union[str, int], data: WordRenameSchema) -> str:
        word = await self._get_word(word_id)
        new_text = data.word_text.strip()
        if not new_text:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty word")

        duplicate = await self.db.execute(
            select(PendingWord.id).where(
                PendingWord.target_word_id == word.id,
                PendingWord.status == PendingStatus.PENDING.value,
                PendingWord.note.contains('"kind":"editWord"'),
            ).limit(1)
        )
        if duplicate.scalar_one_or_none() is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                                detail="Pending edit already exists for this word")

        text_note = (data.note or "").strip()
        note = EditWordNote(created_by=self.principal.label, text=text_note) if text_note \
            else EditWordNote(created_by=self.principal.label)
        pending = PendingWord(
            word_text=new_text,
            length=len(new_text),
            lang_id=word.lang_id,
            note=dump_note(note),
            target_word_id=word.id,
            create_by=self.principal.numeric_id,
        )
        return await self._save(pending)

    async def request_definition_edit(self, opred_id: Union[str, int], data: DefinitionEditSchema) -> str:
        definition = await self.db.get(Definition, parse_pending_id(opred_id))
        if definition is None or definition.is_deleted:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Definition not found")
        word = await self.db.get(Word, definition.word_id)

        duplicate = await self.db.execute(
            select(PendingDescription.id)
            .join(PendingWord, PendingDescription.pending_word_id == PendingWord.id)
            .where(
                PendingDescription.status == PendingStatus.PENDING.value,
                PendingWord.status == PendingStatus.PENDING.value,
                PendingDescription.note.contains(f'"opredId":"{definition.id}"'),
            ).limit(1)
        )
        if duplicate.scalar_one_or_none() is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                                detail="Pending edit already exists for this definition")

        fields = {"opred_id": str(definition.id), "created_by": self.principal.label}
        if data.tags is not None:
            fields["tags"] = data.tags
        text_note = (data.note or "").strip()
        if text_note:
            fields["text"] = text_note

        pending = PendingWord(
            word_text=word.word_text,
            length=word.length,
            lang_id=word.lang_id,
            note=dump_note(EditDefinitionNote(opred_id=str(definition.id), created_by=self.principal.label)),
            target_word_id=word.id,
            create_by=self.principal.numeric_id,
            descriptions=[PendingDescription(
                description=data.text_opr.strip(),
                note=dump_note(EditDefinitionNote(**fields)),
                difficulty=data.difficulty if data.difficulty is not None else definition.difficulty,
                end_date=data.end_date,
                lang_id=word.lang_id,
                create_by=self.principal.numeric_id,
            )],
        )
        return await self._save(pending)
