from crossdict.schemas.note_payload import parse_note
from crossdict.services.approval_planner import (UpdateExisting, MergeInto, CreateNew, normalize_definition,
                                                 plan_description, resolve_created_by_id)


def test_normalize_collapses_whitespace_and_lowercases():
    assert normalize_definition("  Большой   город\t") == "большой город"
    assert normalize_definition("Большой город") == normalize_definition("большой   город")
    assert normalize_definition(None) == ""


def test_normalize_does_not_fold_yo():
    assert normalize_definition("Ёлка") != normalize_definition("елка")


def test_edit_definition_note_updates_in_place():
    note = parse_note('{"kind":"editDef","opredId":"12"}')
    known = {"большой город": 3}
    assert plan_description(note, "большой город", known) == UpdateExisting(12)


def test_known_text_is_merged():
    note = parse_note("")
    assert plan_description(note, "большой город", {"большой город": 3}) == MergeInto(3)


def test_unknown_text_is_created():
    note = parse_note('{"tags":[5]}')
    assert plan_description(note, "маленький город", {"большой город": 3}) == CreateNew()


def test_edit_def_without_target_falls_back_to_text_match():
    note = parse_note('{"kind":"editDef"}')
    assert plan_description(note, "большой город", {"большой город": 3}) == MergeInto(3)


def test_resolve_created_by_id():
    assert resolve_created_by_id(7, '{"createdById": 9}') == 7
    assert resolve_created_by_id(None, '{"createdById": "9"}') == 9
    assert resolve_created_by_id(None, '{"createdBy": "x"}') is None
    assert resolve_created_by_id(None, "garbage") is None
