from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from crossdict.auth.access_scope import PendingAccess
from crossdict.constants.pending import PendingScope
from crossdict.models.base_model import Base
from crossdict.models.dictionary_model import Word, Definition, Tag, DefinitionTag
from crossdict.models.language_model import Language
from crossdict.models.pending_model import PendingWord, PendingDescription
from crossdict.models.permission_model import RolePermission
from crossdict.services.view_cache import pending_views
from crossdict.tasks.pending_cleanup import PendingRetentionSweeper

MODERATOR_ID = 1
EDITOR_ID = 42
OTHER_EDITOR_ID = 43


class FakeClock:
    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy emit BEGIN
    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        session.add_all([
            Language(id=1, code="ru", name="Русский"),
            Language(id=2, code="en", name="English"),
            RolePermission(role="ADMIN", permission="pending:review"),
            RolePermission(role="CHIEF_EDITOR", permission="pending:review"),
            RolePermission(role="CHIEF_EDITOR_PLUS", permission="pending:review"),
            Tag(id=5, name="sport"),
            Tag(id=7, name="history"),
            Tag(id=9, name="slang"),
        ])
        await session.commit()
        yield session


@pytest.fixture(autouse=True)
def clear_pending_views():
    pending_views.clear()
    yield
    pending_views.clear()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sweeper(session_factory, clock):
    return PendingRetentionSweeper(session_factory, clock=clock)


@pytest.fixture
def moderator():
    return PendingAccess(scope=PendingScope.ALL, current_label="chief@example.com", user_id=MODERATOR_ID)


@pytest.fixture
def editor():
    return PendingAccess(scope=PendingScope.OWN, current_label="editor@example.com", user_id=EDITOR_ID)


@pytest.fixture
def other_editor():
    return PendingAccess(scope=PendingScope.OWN, current_label="other@example.com", user_id=OTHER_EDITOR_ID)


@pytest.fixture
def make_pending(db):
    async def _make(word_text: str = "тест",
                    descriptions: Optional[List[dict]] = None,
                    lang_id: int = 1,
                    note: str = "",
                    target_word_id: Optional[int] = None,
                    create_by: Optional[int] = EDITOR_ID,
                    status: str = "PENDING",
                    created_at: Optional[datetime] = None) -> PendingWord:
        pending = PendingWord(
            word_text=word_text,
            length=len(word_text),
            lang_id=lang_id,
            note=note,
            target_word_id=target_word_id,
            create_by=create_by,
            status=status,
        )
        if created_at is not None:
            pending.created_at = created_at
        for item in descriptions or []:
            pending.descriptions.append(PendingDescription(
                description=item["description"],
                note=item.get("note", ""),
                difficulty=item.get("difficulty", 1),
                end_date=item.get("end_date"),
                status=item.get("status", status),
                create_by=item.get("create_by"),
                lang_id=lang_id,
            ))
        db.add(pending)
        await db.commit()
        return pending
    return _make


@pytest.fixture
def make_word(db):
    async def _make(word_text: str,
                    definitions: Optional[List[str]] = None,
                    lang_id: int = 1,
                    is_deleted: bool = False,
                    tags: Optional[dict] = None) -> Word:
        word = Word(word_text=word_text, length=len(word_text), lang_id=lang_id, is_deleted=is_deleted)
        db.add(word)
        await db.flush()
        for text in definitions or []:
            definition = Definition(word_id=word.id, text_opr=text, length=len(text), lang_id=lang_id)
            db.add(definition)
            await db.flush()
            for tag_id in (tags or {}).get(text, []):
                db.add(DefinitionTag(opred_id=definition.id, tag_id=tag_id))
        await db.commit()
        return word
    return _make
