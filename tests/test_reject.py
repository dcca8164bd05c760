from sqlalchemy import select, func

from crossdict.models.dictionary_model import Word
from crossdict.models.pending_model import PendingWord, PendingDescription
from crossdict.repositories.pending_repository import RejectPendingRepository, ApprovePendingRepository

from conftest import OTHER_EDITOR_ID


async def statuses(db, pending_id):
    card = (await db.execute(select(PendingWord.status).where(PendingWord.id == pending_id))).scalar_one()
    descriptions = (await db.execute(
        select(PendingDescription.status).where(PendingDescription.pending_word_id == pending_id)
    )).scalars().all()
    return card, sorted(descriptions)


async def test_moderator_rejects_card_and_descriptions(db, moderator, make_pending):
    card = await make_pending("кот", [{"description": "Мурлыка"}, {"description": "Хищник"}])

    assert await RejectPendingRepository(db, moderator, str(card.id)).reject() is True

    assert await statuses(db, card.id) == ("REJECTED", ["REJECTED", "REJECTED"])
    assert (await db.execute(select(func.count(Word.id)))).scalar() == 0


async def test_editor_rejects_own_card(db, editor, make_pending):
    card = await make_pending("кот", [{"description": "Мурлыка"}])

    assert await RejectPendingRepository(db, editor, card.id).reject() is True
    assert (await statuses(db, card.id))[0] == "REJECTED"


async def test_editor_rejects_card_owned_by_note_label(db, editor, make_pending):
    card = await make_pending("кот", [{"description": "Мурлыка"}], create_by=None,
                              note='{"kind":"newWord","createdBy":"editor@example.com"}')

    assert await RejectPendingRepository(db, editor, card.id).reject() is True


async def test_foreign_card_is_silent_noop(db, editor, make_pending):
    card = await make_pending("кот", [{"description": "Мурлыка"}], create_by=OTHER_EDITOR_ID)
    card_id = card.id

    assert await RejectPendingRepository(db, editor, card_id).reject() is False
    assert await statuses(db, card_id) == ("PENDING", ["PENDING"])


async def test_reject_after_approve_is_noop(db, moderator, make_pending):
    card = await make_pending("кот", [{"description": "Мурлыка"}])
    card_id = card.id
    await ApprovePendingRepository(db, moderator, card_id).approve()

    # The skipped reject rolls back, which expires the loaded card
    assert await RejectPendingRepository(db, moderator, card_id).reject() is False
    assert (await statuses(db, card_id))[0] == "APPROVED"


async def test_reject_runs_sweeper(db, moderator, make_pending, sweeper):
    card = await make_pending("кот", [{"description": "Мурлыка"}])

    await RejectPendingRepository(db, moderator, card.id, sweeper=sweeper).reject()

    assert sweeper.run_count == 1
