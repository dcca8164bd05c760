"""
Pure decision step of the approval engine.

For every pending description the engine first decides what to do with the
live dictionary and only then touches the database:

* ``UpdateExisting(opred_id)`` - the description edits an existing definition
* ``MergeInto(opred_id)``      - the same text is already live for the word
* ``CreateNew()``              - a new definition has to be inserted
"""
import re
from dataclasses import dataclass
from typing import Mapping, Optional, Union

from crossdict.schemas.note_payload import EditDefinitionNote, NoteBase, parse_note

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class UpdateExisting:
    opred_id: int


@dataclass(frozen=True)
class MergeInto:
    opred_id: int


@dataclass(frozen=True)
class CreateNew:
    pass


DescriptionPlan = Union[UpdateExisting, MergeInto, CreateNew]


def normalize_definition(text: Optional[str]) -> str:
    # Plain str.lower(): no locale-aware folding, existing rows were merged with this rule
    return _WHITESPACE.sub(" ", (text or "").strip()).lower()


def plan_description(note: NoteBase, normalized_text: str, known: Mapping[str, int]) -> DescriptionPlan:
    if isinstance(note, EditDefinitionNote):
        return UpdateExisting(int(note.opred_id))
    existing_id = known.get(normalized_text)
    if existing_id is not None:
        return MergeInto(existing_id)
    return CreateNew()


def resolve_created_by_id(explicit: Optional[int], raw_note: Optional[str]) -> Optional[int]:
    """Numeric creator: explicit column first, then ``createdById`` from the note."""
    if explicit is not None:
        return explicit
    return parse_note(raw_note).created_by_id
