import json
from datetime import datetime

import pytest
from fastapi import HTTPException
from sqlalchemy import select

from crossdict.models.pending_model import PendingWord, PendingDescription
from crossdict.repositories.pending_repository import (SavePendingRepository, parse_description_fields,
                                                       parse_pending_id)
from crossdict.schemas.pending_schema import PendingEditSchema

from conftest import MODERATOR_ID, EDITOR_ID, OTHER_EDITOR_ID


async def card_row(db, pending_id):
    result = await db.execute(
        select(PendingWord.word_text, PendingWord.length, PendingWord.lang_id, PendingWord.update_by)
        .where(PendingWord.id == pending_id)
    )
    return result.one()


async def description_rows(db, pending_id):
    result = await db.execute(
        select(PendingDescription.id, PendingDescription.description, PendingDescription.difficulty,
               PendingDescription.end_date, PendingDescription.note, PendingDescription.lang_id,
               PendingDescription.update_by)
        .where(PendingDescription.pending_word_id == pending_id)
        .order_by(PendingDescription.id)
    )
    return result.all()


async def test_full_edit(db, moderator, make_pending):
    card = await make_pending("кот", [
        {"description": "Мурлыка", "note": '{"text":"keep me"}'},
        {"description": "Лишнее"},
    ])
    first, second = await description_rows(db, card.id)
    await db.commit()

    edit = PendingEditSchema(
        language="en",
        word="  cat ",
        fields={
            f"desc_text_{first.id}": " Purring pet ",
            f"desc_diff_{first.id}": "3",
            f"desc_end_{first.id}": "2026-12-31T00:00:00Z",
            f"desc_tags_{first.id}": "[5, 7, 5]",
            "unrelated": "ignored",
        },
        delete_desc_ids=[str(second.id)],
    )
    assert await SavePendingRepository(db, moderator, str(card.id), edit).save() is True

    assert await card_row(db, card.id) == ("cat", 3, 2, MODERATOR_ID)
    [row] = await description_rows(db, card.id)
    assert row.description == "Purring pet"
    assert row.difficulty == 3
    assert row.end_date.replace(tzinfo=None) == datetime(2026, 12, 31)
    assert json.loads(row.note) == {"text": "keep me", "tags": [5, 7]}
    assert row.lang_id == 2
    assert row.update_by == MODERATOR_ID


async def test_language_is_locked_once_target_word_exists(db, moderator, make_pending, make_word):
    word = await make_word("кот")
    card = await make_pending("кот", [{"description": "Мурлыка"}], target_word_id=word.id)

    await SavePendingRepository(db, moderator, card.id, PendingEditSchema(language="en")).save()

    assert (await card_row(db, card.id)).lang_id == 1


async def test_unknown_language_is_ignored(db, moderator, make_pending):
    card = await make_pending("кот", [{"description": "Мурлыка"}])

    await SavePendingRepository(db, moderator, card.id, PendingEditSchema(language="xx", word="кошка")).save()

    assert (await card_row(db, card.id))[:3] == ("кошка", 5, 1)


async def test_unparseable_values(db, moderator, make_pending):
    card = await make_pending("кот", [{"description": "Мурлыка", "difficulty": 2,
                                       "end_date": datetime(2027, 1, 1)}])
    [desc] = await description_rows(db, card.id)
    await db.commit()

    edit = PendingEditSchema(fields={
        f"desc_text_{desc.id}": "   ",
        f"desc_diff_{desc.id}": "hard",
        f"desc_end_{desc.id}": "",
        f"desc_tags_{desc.id}": "[5, oops",
    })
    await SavePendingRepository(db, moderator, card.id, edit).save()

    [row] = await description_rows(db, card.id)
    assert row.description == "Мурлыка"
    assert row.difficulty == 2
    assert row.end_date is None
    assert json.loads(row.note) == {"tags": []}


async def test_malformed_description_id_rejects_whole_call(db, moderator, make_pending):
    card = await make_pending("кот", [{"description": "Мурлыка"}])

    edit = PendingEditSchema(word="кошка", fields={"desc_text_abc": "x"})
    with pytest.raises(HTTPException) as ex:
        await SavePendingRepository(db, moderator, card.id, edit).save()
    assert ex.value.status_code == 400
    assert (await card_row(db, card.id)).word_text == "кот"


async def test_malformed_delete_id_rejects_whole_call(db, moderator, make_pending):
    card = await make_pending("кот", [{"description": "Мурлыка"}])

    with pytest.raises(HTTPException) as ex:
        await SavePendingRepository(db, moderator, card.id,
                                    PendingEditSchema(word="кошка", delete_desc_ids=["1x"])).save()
    assert ex.value.status_code == 400
    assert (await card_row(db, card.id)).word_text == "кот"


async def test_descriptions_of_other_cards_are_untouched(db, moderator, make_pending):
    card = await make_pending("кот", [{"description": "Мурлыка"}])
    other = await make_pending("пёс", [{"description": "Друг"}])
    [foreign] = await description_rows(db, other.id)
    await db.commit()

    edit = PendingEditSchema(fields={f"desc_text_{foreign.id}": "hijacked"}, delete_desc_ids=[foreign.id])
    assert await SavePendingRepository(db, moderator, card.id, edit).save() is True

    [row] = await description_rows(db, other.id)
    assert row.description == "Друг"


async def test_editor_edits_own_card(db, editor, make_pending):
    card = await make_pending("кот", [{"description": "Мурлыка"}])

    assert await SavePendingRepository(db, editor, card.id, PendingEditSchema(word="кошка")).save() is True
    assert await card_row(db, card.id) == ("кошка", 5, 1, EDITOR_ID)


async def test_editor_cannot_edit_foreign_card(db, editor, make_pending):
    card = await make_pending("кот", [{"description": "Мурлыка"}], create_by=OTHER_EDITOR_ID)

    assert await SavePendingRepository(db, editor, card.id, PendingEditSchema(word="кошка")).save() is False
    assert (await card_row(db, card.id)).word_text == "кот"


async def test_resolved_card_is_not_edited(db, moderator, make_pending):
    card = await make_pending("кот", [{"description": "Мурлыка"}], status="APPROVED")

    assert await SavePendingRepository(db, moderator, card.id, PendingEditSchema(word="кошка")).save() is False
    assert (await card_row(db, card.id)).word_text == "кот"


def test_parse_description_fields_groups_by_id():
    edits = parse_description_fields({
        "desc_text_4": "text",
        "desc_diff_4": 2,
        "desc_tags_5": [7, "x", 7],
        "desc_end_5": "not a date",
        "word": "ignored",
    })
    assert set(edits) == {4, 5}
    assert edits[4].text == "text"
    assert edits[4].difficulty == 2
    assert edits[5].tags == [7]
    assert edits[5].end_date is None
    assert not edits[5].clear_end_date


def test_parse_pending_id():
    assert parse_pending_id("9007199254740993") == 9007199254740993
    assert parse_pending_id(" 12 ") == 12
    with pytest.raises(HTTPException):
        parse_pending_id("abc")
    with pytest.raises(HTTPException):
        parse_pending_id(True)
