import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set, Union

from fastapi import HTTPException, status
from sqlalchemy import select, func, or_, delete, insert
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from crossdict.auth.access_scope import PendingAccess
from crossdict.constants.pending import (PendingStatus, PENDING_PAGE_SIZE, DESC_FIELD_PREFIXES)
from crossdict.logging_config import setup_logger
from crossdict.models.dictionary_model import Word, Definition, DefinitionTag
from crossdict.models.language_model import Language
from crossdict.models.pending_model import PendingWord, PendingDescription
from crossdict.schemas.note_payload import (EditDefinitionNote, parse_note, dump_note, sanitize_tag_ids)
from crossdict.schemas.pending_schema import PendingEditSchema
from crossdict.services.approval_planner import (UpdateExisting, MergeInto, normalize_definition,
                                                 plan_description, resolve_created_by_id)
from crossdict.services.view_cache import pending_views, pending_view_path, revalidate_pending_views
from crossdict.tasks.pending_cleanup import PendingRetentionSweeper

logger = setup_logger(__name__, "pending.log")


def parse_pending_id(raw: Union[str, int, None]) -> int:
    """Ids travel as strings (they can exceed 2**53); anything non-numeric is a bad request."""
    if isinstance(raw, bool):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid id: {raw!r}")
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip(), 10)
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid id: {raw!r}")


def parse_end_date(value: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_tag_list(value: Any) -> List[int]:
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return []
    return sanitize_tag_ids(value) or []


async def after_pending_change(sweeper: Optional[PendingRetentionSweeper]) -> None:
    """Post-commit hooks: opportunistic retention sweep, then moderation list invalidation."""
    if sweeper is not None:
        try:
            await sweeper.maybe_run()
        except Exception:
            # Already committed; the sweep is best-effort
            logger.exception("Pending cleanup after a committed change failed")
    revalidate_pending_views()


def serialize_description(d: PendingDescription) -> dict:
    note = parse_note(d.note)
    return {
        "id": str(d.id),
        "description": d.description,
        "difficulty": d.difficulty,
        "end_date": d.end_date,
        "status": d.status,
        "approved_opred_id": str(d.approved_opred_id) if d.approved_opred_id is not None else None,
        "kind": note.kind if isinstance(note.kind, str) else None,
        "opred_id": note.opred_id if isinstance(note, EditDefinitionNote) else None,
        "tags": note.tags or [],
        "text": note.text,
        "created_by": d.create_by,
    }


def serialize_pending(pw: PendingWord) -> dict:
    note = parse_note(pw.note)
    return {
        "id": str(pw.id),
        "word_text": pw.word_text,
        "length": pw.length,
        "language": pw.language.code if pw.language else None,
        "status": pw.status,
        "kind": note.kind if isinstance(note.kind, str) else None,
        "created_by_label": note.created_by,
        "created_by": pw.create_by,
        "target_word_id": str(pw.target_word_id) if pw.target_word_id is not None else None,
        "target_word_text": pw.target_word.word_text if pw.target_word else None,
        "note_text": note.text,
        "created_at": pw.created_at,
        "descriptions": [serialize_description(d) for d in pw.descriptions],
    }


class GetPendingRepository:
    def __init__(self, db: AsyncSession, access: PendingAccess, locale: Optional[str] = None,
                 limit: int = PENDING_PAGE_SIZE):
        self.db = db
        self.access = access
        self.locale = locale
        self.limit = limit

    def _owner_filter(self):
        conditions = []
        user_id = self.access.user_id
        if user_id is not None:
            conditions.append(PendingWord.create_by == user_id)
            conditions.append(PendingWord.descriptions.any(PendingDescription.create_by == user_id))
        label_fragment = f'"createdBy":{json.dumps(self.access.current_label, ensure_ascii=False)}'
        conditions.append(PendingWord.note.contains(label_fragment, autoescape=True))
        return or_(*conditions)

    async def get_pending(self) -> List[dict]:
        path = pending_view_path(self.locale)
        cache_key = (self.access.scope.value, self.access.user_id, self.access.current_label, self.limit)
        cached = pending_views.get(path, cache_key)
        if cached is not None:
            return cached

        query = (
            select(PendingWord)
            .where(PendingWord.status == PendingStatus.PENDING.value)
            .options(
                selectinload(PendingWord.descriptions),
                selectinload(PendingWord.language),
                selectinload(PendingWord.target_word),
            )
            .order_by(PendingWord.created_at.desc(), PendingWord.id.desc())
            .limit(self.limit)
        )
        if not self.access.is_moderator:
            query = query.where(self._owner_filter())

        result = await self.db.execute(query)
        items = [serialize_pending(pw) for pw in result.scalars().all()]
        pending_views.set(path, cache_key, items)
        return items


class GetPendingCountRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_counts(self) -> dict:
        words_result = await self.db.execute(
            select(func.count(PendingWord.id)).where(PendingWord.status == PendingStatus.PENDING.value)
        )
        descriptions_result = await self.db.execute(
            select(func.count(PendingDescription.id))
            .join(PendingWord, PendingDescription.pending_word_id == PendingWord.id)
            .where(
                PendingDescription.status == PendingStatus.PENDING.value,
                PendingWord.status == PendingStatus.PENDING.value,
            )
        )
        words = words_result.scalar() or 0
        # A card is counted once no matter how many definitions it carries
        return {"total": words, "words": words, "descriptions": descriptions_result.scalar() or 0}


@dataclass
class DescriptionEdits:
    text: Optional[str] = None
    difficulty: Optional[int] = None
    end_date: Optional[datetime] = None
    clear_end_date: bool = False
    tags: Optional[List[int]] = None

    def set_field(self, field: str, value: Any) -> None:
        if field == "text":
            text = str(value).strip() if value is not None else ""
            if text:
                self.text = text
        elif field == "difficulty":
            if isinstance(value, bool):
                return
            try:
                difficulty = int(str(value).strip(), 10)
            except ValueError:
                return
            if difficulty >= 0:
                self.difficulty = difficulty
        elif field == "end_date":
            if value is None or (isinstance(value, str) and not value.strip()):
                self.clear_end_date = True
                self.end_date = None
            elif isinstance(value, str):
                parsed = parse_end_date(value)
                if parsed is not None:
                    self.end_date = parsed
                    self.clear_end_date = False
        elif field == "tags":
            self.tags = parse_tag_list(value)

    def apply(self, d: PendingDescription) -> bool:
        touched = False
        if self.text is not None:
            d.description = self.text
            touched = True
        if self.difficulty is not None:
            d.difficulty = self.difficulty
            touched = True
        if self.clear_end_date:
            d.end_date = None
            touched = True
        elif self.end_date is not None:
            d.end_date = self.end_date
            touched = True
        if self.tags is not None:
            d.note = dump_note(parse_note(d.note).with_tags(self.tags))
            touched = True
        return touched


def parse_description_fields(fields: Dict[str, Any]) -> Dict[int, DescriptionEdits]:
    edits: Dict[int, DescriptionEdits] = {}
    for key, value in fields.items():
        for prefix, field in DESC_FIELD_PREFIXES.items():
            if key.startswith(prefix):
                desc_id = parse_pending_id(key[len(prefix):])
                edits.setdefault(desc_id, DescriptionEdits()).set_field(field, value)
                break
    return edits


class SavePendingRepository:
    def __init__(self, db: AsyncSession, access: PendingAccess, pending_id: Union[str, int],
                 edit: PendingEditSchema):
        self.db = db
        self.access = access
        self.pending_id = pending_id
        self.edit = edit

    async def _find_language(self, code: str) -> Optional[Language]:
        result = await self.db.execute(select(Language).where(Language.code == code))
        return result.scalar_one_or_none()

    async def save(self) -> bool:
        # Parse every id up front so a malformed one rejects the whole call before any write
        pending_id = parse_pending_id(self.pending_id)
        desc_edits = parse_description_fields(self.edit.fields)
        delete_ids: Set[int] = {parse_pending_id(raw) for raw in self.edit.delete_desc_ids if str(raw).strip()}

        try:
            result = await self.db.execute(
                select(PendingWord)
                .where(PendingWord.id == pending_id)
                .options(selectinload(PendingWord.descriptions))
                .execution_options(populate_existing=True)
            )
            pw = result.scalar_one_or_none()
            if pw is None or pw.status != PendingStatus.PENDING.value:
                logger.info(f"Save skipped: pending {pending_id} missing or already resolved")
                return False
            if not self.access.can_modify(pw.create_by, pw.note):
                logger.info(f"Save skipped: {self.access.current_label} does not own pending {pending_id}")
                return False

            update_by = self.access.user_id

            lang_code = (self.edit.language or "").strip()
            if lang_code and pw.target_word_id is None:
                lang = await self._find_language(lang_code)
                if lang is not None:
                    pw.lang_id = lang.id
                    for d in pw.descriptions:
                        d.lang_id = lang.id
                        if update_by is not None:
                            d.update_by = update_by

            word = (self.edit.word or "").strip()
            if word:
                pw.word_text = word
                pw.length = len(word)

            by_id = {d.id: d for d in pw.descriptions}
            for desc_id, edits in desc_edits.items():
                d = by_id.get(desc_id)
                if d is None:
                    logger.info(f"Save: description {desc_id} does not belong to pending {pending_id}")
                    continue
                if edits.apply(d) and update_by is not None:
                    d.update_by = update_by

            for desc_id in delete_ids:
                d = by_id.get(desc_id)
                if d is not None:
                    pw.descriptions.remove(d)

            if update_by is not None:
                pw.update_by = update_by

            await self.db.commit()

        except HTTPException:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Database error while saving pending {pending_id}: {str(e)}")
            await self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Database error occurred"
            )

        revalidate_pending_views()
        return True


class ApprovePendingRepository:
    """
    Promotes one pending card into live ``word_v`` / ``opred_v`` rows.

    Everything between loading the card and marking it APPROVED happens in a
    single transaction; any failure rolls back all of it and propagates.
    """

    def __init__(self, db: AsyncSession, access: PendingAccess, pending_id: Union[str, int],
                 sweeper: Optional[PendingRetentionSweeper] = None):
        self.db = db
        self.access = access
        self.pending_id = pending_id
        self.sweeper = sweeper

    async def approve(self) -> bool:
        self.access.require_moderator()
        pending_id = parse_pending_id(self.pending_id)
        approver_id = self.access.user_id

        try:
            pw = await self._lock_pending(pending_id)
            if pw is None or pw.status != PendingStatus.PENDING.value:
                logger.info(f"Approve skipped: pending {pending_id} missing or already resolved")
                await self.db.rollback()
                return False

            word_id = await self._promote(pw, approver_id)
            await self.db.commit()

        except HTTPException:
            await self.db.rollback()
            raise
        except SQLAlchemyError as e:
            logger.error(f"Approval of pending {pending_id} failed, rolled back: {str(e)}")
            await self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Approval failed, nothing was applied"
            )
        except Exception:
            logger.exception(f"Unexpected error approving pending {pending_id}")
            await self.db.rollback()
            raise

        logger.info(f"Pending {pending_id} approved by {self.access.current_label} into word {word_id}")
        await after_pending_change(self.sweeper)
        return True

    async def _lock_pending(self, pending_id: int) -> Optional[PendingWord]:
        # Row lock + status recheck turns a concurrent second approval into a no-op
        result = await self.db.execute(
            select(PendingWord)
            .where(PendingWord.id == pending_id)
            .options(selectinload(PendingWord.descriptions))
            .with_for_update(of=PendingWord)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _promote(self, pw: PendingWord, approver_id: Optional[int]) -> int:
        pending_creator_id = resolve_created_by_id(pw.create_by, pw.note)
        word_id = await self.resolve_word_id(pw, pending_creator_id, approver_id)

        if not pw.descriptions:
            await self._apply_rename(word_id, pw, pending_creator_id, approver_id)
        else:
            await self._promote_descriptions(pw, word_id, pending_creator_id, approver_id)

        pw.status = PendingStatus.APPROVED.value
        pw.target_word_id = word_id
        if approver_id is not None:
            pw.approved_by = approver_id
        return word_id

    async def find_live_word_id(self, word_text: str, lang_id: int) -> Optional[int]:
        result = await self.db.execute(
            select(Word.id)
            .where(Word.word_text == word_text, Word.lang_id == lang_id, Word.is_deleted.is_(False))
            .order_by(Word.id)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def find_any_word_id(self, word_text: str, lang_id: int) -> Optional[int]:
        result = await self.db.execute(
            select(Word.id)
            .where(Word.word_text == word_text, Word.lang_id == lang_id)
            .order_by(Word.id)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def resolve_word_id(self, pw: PendingWord, creator_id: Optional[int],
                              approver_id: Optional[int]) -> int:
        if pw.target_word_id is not None:
            return pw.target_word_id

        # Another approved card may already have created the same word
        existing_id = await self.find_live_word_id(pw.word_text, pw.lang_id)
        if existing_id is not None:
            return existing_id

        try:
            async with self.db.begin_nested():
                word = Word(
                    word_text=pw.word_text,
                    length=pw.length,
                    lang_id=pw.lang_id,
                    create_by=creator_id if creator_id is not None else approver_id,
                    approved_by=approver_id,
                )
                self.db.add(word)
                await self.db.flush()
                created_id = word.id
            return created_id
        except IntegrityError:
            # A concurrent approval won the insert; reuse its row
            fallback_id = await self.find_any_word_id(pw.word_text, pw.lang_id)
            if fallback_id is None:
                raise
            logger.info(f"Word {pw.word_text!r} created concurrently, reusing id {fallback_id}")
            return fallback_id

    async def _apply_rename(self, word_id: int, pw: PendingWord, creator_id: Optional[int],
                            approver_id: Optional[int]) -> None:
        word = await self.db.get(Word, word_id)
        if word is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Word {word_id} not found")
        word.word_text = pw.word_text
        word.length = pw.length
        editor_id = creator_id if creator_id is not None else approver_id
        if editor_id is not None:
            word.update_by = editor_id
        if approver_id is not None:
            word.approved_by = approver_id

    async def _load_definition_index(self, word_id: int) -> Dict[str, int]:
        result = await self.db.execute(
            select(Definition.id, Definition.text_opr)
            .where(Definition.word_id == word_id, Definition.is_deleted.is_(False))
            .order_by(Definition.id)
        )
        index: Dict[str, int] = {}
        for opred_id, text_opr in result.all():
            index.setdefault(normalize_definition(text_opr), opred_id)
        return index

    async def _promote_descriptions(self, pw: PendingWord, word_id: int, pending_creator_id: Optional[int],
                                    approver_id: Optional[int]) -> None:
        known = await self._load_definition_index(word_id)

        for d in pw.descriptions:
            note = parse_note(d.note)
            normalized = normalize_definition(d.description)
            submitter_id = resolve_created_by_id(d.create_by, d.note)
            if submitter_id is None:
                submitter_id = pending_creator_id if pending_creator_id is not None else approver_id
            added_by = submitter_id if submitter_id is not None else approver_id
            difficulty = max(0, d.difficulty) if d.difficulty is not None else None

            plan = plan_description(note, normalized, known)

            if isinstance(plan, UpdateExisting):
                opred_id = await self._update_definition(plan.opred_id, d, difficulty, submitter_id, approver_id)
                if note.has_tags:
                    await self.replace_tags(opred_id, note.tags, added_by)
                known[normalized] = opred_id

            elif isinstance(plan, MergeInto):
                opred_id = plan.opred_id
                logger.info(f"Pending description {d.id} merged into existing definition {opred_id}")
                if note.tags:
                    await self.attach_tags(opred_id, note.tags, added_by)

            else:
                definition = Definition(
                    word_id=word_id,
                    text_opr=d.description,
                    length=len(d.description),
                    text_updated_at=datetime.now(timezone.utc),
                    lang_id=pw.lang_id,
                    difficulty=difficulty if difficulty is not None else 1,
                    end_date=d.end_date,
                    create_by=submitter_id,
                    approved_by=approver_id,
                )
                self.db.add(definition)
                await self.db.flush()
                opred_id = definition.id
                known[normalized] = opred_id
                if note.tags:
                    await self.attach_tags(opred_id, note.tags, added_by)

            d.status = PendingStatus.APPROVED.value
            d.approved_opred_id = opred_id
            if approver_id is not None:
                d.approved_by = approver_id

    async def _update_definition(self, opred_id: int, d: PendingDescription, difficulty: Optional[int],
                                 submitter_id: Optional[int], approver_id: Optional[int]) -> int:
        definition = await self.db.get(Definition, opred_id)
        if definition is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                                detail=f"Definition {opred_id} not found")
        definition.text_opr = d.description
        definition.length = len(d.description)
        definition.text_updated_at = datetime.now(timezone.utc)
        if difficulty is not None:
            definition.difficulty = difficulty
        if d.end_date is not None:
            definition.end_date = d.end_date
        if submitter_id is not None:
            definition.update_by = submitter_id
        if approver_id is not None:
            definition.approved_by = approver_id
        await self.db.flush()
        return definition.id

    async def replace_tags(self, opred_id: int, tags: List[int], added_by: Optional[int]) -> None:
        """Full replace: an empty list removes every tag of the definition."""
        await self.db.execute(delete(DefinitionTag).where(DefinitionTag.opred_id == opred_id))
        if tags:
            await self.db.execute(
                insert(DefinitionTag),
                [{"opred_id": opred_id, "tag_id": tag_id, "added_by": added_by} for tag_id in tags],
            )

    async def attach_tags(self, opred_id: int, tags: List[int], added_by: Optional[int]) -> None:
        """Idempotent attach: tags already on the definition are left alone."""
        result = await self.db.execute(
            select(DefinitionTag.tag_id).where(DefinitionTag.opred_id == opred_id)
        )
        present = set(result.scalars().all())
        missing = [tag_id for tag_id in tags if tag_id not in present]
        if missing:
            await self.db.execute(
                insert(DefinitionTag),
                [{"opred_id": opred_id, "tag_id": tag_id, "added_by": added_by} for tag_id in missing],
            )


class RejectPendingRepository:
    def __init__(self, db: AsyncSession, access: PendingAccess, pending_id: Union[str, int],
                 sweeper: Optional[PendingRetentionSweeper] = None):
        self.db = db
        self.access = access
        self.pending_id = pending_id
        self.sweeper = sweeper

    async def reject(self) -> bool:
        pending_id = parse_pending_id(self.pending_id)
        try:
            result = await self.db.execute(
                select(PendingWord)
                .where(PendingWord.id == pending_id)
                .options(selectinload(PendingWord.descriptions))
                .with_for_update(of=PendingWord)
                .execution_options(populate_existing=True)
            )
            pw = result.scalar_one_or_none()
            if pw is None or pw.status != PendingStatus.PENDING.value:
                logger.info(f"Reject skipped: pending {pending_id} missing or already resolved")
                await self.db.rollback()
                return False
            if not self.access.can_modify(pw.create_by, pw.note):
                logger.info(f"Reject skipped: {self.access.current_label} does not own pending {pending_id}")
                await self.db.rollback()
                return False

            pw.status = PendingStatus.REJECTED.value
            for d in pw.descriptions:
                d.status = PendingStatus.REJECTED.value

            await self.db.commit()

        except SQLAlchemyError as e:
            logger.error(f"Rejecting pending {pending_id} failed: {str(e)}")
            await self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Database error occurred"
            )

        logger.info(f"Pending {pending_id} rejected by {self.access.current_label}")
        await after_pending_change(self.sweeper)
        return True
