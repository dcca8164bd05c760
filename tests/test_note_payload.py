import json

from pydantic import ValidationError

from crossdict.schemas.note_payload import (NewWordNote, EditWordNote, EditDefinitionNote, AddDefinitionNote,
                                            UnknownNote, parse_note, dump_note, note_created_by,
                                            sanitize_tag_ids)


def test_empty_note_is_new_word():
    assert isinstance(parse_note(""), NewWordNote)
    assert isinstance(parse_note(None), NewWordNote)
    assert isinstance(parse_note("   "), NewWordNote)


def test_known_kinds_are_recognised():
    assert isinstance(parse_note('{"kind":"newWord","createdBy":"a@b.c"}'), NewWordNote)
    assert isinstance(parse_note('{"kind":"editWord"}'), EditWordNote)
    assert isinstance(parse_note('{"kind":"addDefinition"}'), AddDefinitionNote)

    note = parse_note('{"kind":"editDef","opredId":"17","tags":[5,7]}')
    assert isinstance(note, EditDefinitionNote)
    assert note.opred_id == "17"
    assert note.tags == [5, 7]


def test_numeric_opred_id_is_accepted():
    note = parse_note('{"kind":"editDef","opredId":17}')
    assert isinstance(note, EditDefinitionNote)
    assert note.opred_id == "17"


def test_integral_float_opred_id_is_accepted():
    note = parse_note('{"kind":"editDef","opredId":5.0}')
    assert isinstance(note, EditDefinitionNote)
    assert note.opred_id == "5"
    assert json.loads(dump_note(note))["opredId"] == "5"

    assert isinstance(parse_note('{"kind":"editDef","opredId":5.5}'), UnknownNote)


def test_validation_failure_becomes_unknown(monkeypatch):
    def reject(data):
        raise ValidationError.from_exception_data("EditWordNote", [])

    monkeypatch.setattr(EditWordNote, "model_validate", reject)
    raw = '{"kind":"editWord","text":"x"}'
    note = parse_note(raw)
    assert isinstance(note, UnknownNote)
    assert note.raw == raw


def test_edit_def_without_usable_opred_id_is_unknown():
    assert isinstance(parse_note('{"kind":"editDef"}'), UnknownNote)
    assert isinstance(parse_note('{"kind":"editDef","opredId":"abc"}'), UnknownNote)


def test_malformed_json_is_kept_verbatim():
    note = parse_note("not json at all")
    assert isinstance(note, UnknownNote)
    assert note.raw == "not json at all"
    assert dump_note(note) == "not json at all"
    assert note.tags is None


def test_non_object_json_is_unknown():
    assert isinstance(parse_note("[1, 2]"), UnknownNote)
    assert isinstance(parse_note('"text"'), UnknownNote)


def test_unrecognised_kind_keeps_extra_keys():
    note = parse_note('{"kind":"mergeWords","from":"1","to":"2","createdBy":"x"}')
    assert isinstance(note, UnknownNote)
    assert note.created_by == "x"

    dumped = json.loads(dump_note(note))
    assert dumped == {"kind": "mergeWords", "from": "1", "to": "2", "createdBy": "x"}


def test_lenient_field_parsing():
    note = parse_note('{"createdBy": 5, "createdById": "12", "tags": [5, "7", true, 5, 9], "difficulty": "3"}')
    assert note.created_by is None
    assert note.created_by_id == 12
    assert note.tags == [5, 9]
    assert note.difficulty == 3


def test_tags_that_are_not_a_list_are_ignored():
    note = parse_note('{"tags": "5,7"}')
    assert note.tags is None
    assert not note.has_tags


def test_empty_tag_list_counts_as_present():
    note = parse_note('{"kind":"editDef","opredId":"3","tags":[]}')
    assert note.has_tags
    assert note.tags == []


def test_dump_is_compact_and_puts_kind_first():
    note = EditDefinitionNote(opred_id="17", created_by="editor@example.com", tags=[5])
    raw = dump_note(note)
    assert raw.startswith('{"kind":"editDef"')
    assert '"opredId":"17"' in raw
    assert '"createdBy":"editor@example.com"' in raw
    assert " " not in raw


def test_with_tags_keeps_other_keys():
    note = parse_note('{"kind":"editDef","opredId":"4","text":"why","extra":1}')
    updated = json.loads(dump_note(note.with_tags([7])))
    assert updated == {"kind": "editDef", "opredId": "4", "text": "why", "extra": 1, "tags": [7]}


def test_with_tags_on_garbage_starts_fresh():
    note = parse_note("{broken")
    assert json.loads(dump_note(note.with_tags([5]))) == {"tags": [5]}


def test_cyrillic_is_not_escaped():
    raw = dump_note(NewWordNote(kind="newWord", created_by="Редактор"))
    assert raw == '{"kind":"newWord","createdBy":"Редактор"}'


def test_note_created_by():
    assert note_created_by('{"createdBy":"a@b.c"}') == "a@b.c"
    assert note_created_by("garbage") is None
    assert note_created_by("") is None


def test_sanitize_tag_ids():
    assert sanitize_tag_ids([3, 3, 1, False, "2", 4.0]) == [3, 1]
    assert sanitize_tag_ids(None) is None
    assert sanitize_tag_ids({"a": 1}) is None
