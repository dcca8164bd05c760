"""
Typed view of the ``note`` JSON side-channel carried by pending cards and
pending descriptions.

The column stays free-form JSON so new submission kinds can be added without
schema changes. Everything inside the application goes through
``parse_note`` / ``dump_note`` instead of calling ``json.loads`` ad hoc:

* ``NewWordNote``        kind unset or ``"newWord"``
* ``EditWordNote``       ``"editWord"`` (rename of an existing word)
* ``EditDefinitionNote`` ``"editDef"`` with an ``opredId``
* ``AddDefinitionNote``  ``"addDefinition"``
* ``UnknownNote``        anything else, including malformed JSON

Unrecognised keys are kept as pydantic extras and written back unchanged.
"""
import json
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError, field_validator


class NoteKind:
    NEW_WORD = "newWord"
    EDIT_WORD = "editWord"
    EDIT_DEF = "editDef"
    ADD_DEFINITION = "addDefinition"


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip(), 10)
        except ValueError:
            return None
    return None


def sanitize_tag_ids(value: Any) -> Optional[List[int]]:
    """Keep integer tag ids only, de-duplicated in first-seen order; non-lists become None."""
    if not isinstance(value, list):
        return None
    tags: List[int] = []
    for item in value:
        if isinstance(item, bool) or not isinstance(item, int):
            continue
        if item not in tags:
            tags.append(item)
    return tags


class NoteBase(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    created_by: Optional[str] = Field(None, alias="createdBy")
    created_by_id: Optional[int] = Field(None, alias="createdById")
    tags: Optional[List[int]] = None
    text: Optional[str] = None
    difficulty: Optional[int] = None

    @field_validator("created_by", "text", mode="before")
    @classmethod
    def _strings_only(cls, v):
        return v if isinstance(v, str) else None

    @field_validator("created_by_id", "difficulty", mode="before")
    @classmethod
    def _lenient_int(cls, v):
        return _as_int(v)

    @field_validator("tags", mode="before")
    @classmethod
    def _tag_ids(cls, v):
        return sanitize_tag_ids(v)

    @property
    def has_tags(self) -> bool:
        """True when the submitter sent a tag list at all (an empty list counts)."""
        return self.tags is not None

    def with_tags(self, tags: List[int]) -> "NoteBase":
        return self.model_copy(update={"tags": list(tags)})


class NewWordNote(NoteBase):
    kind: Optional[Literal["newWord"]] = None


class EditWordNote(NoteBase):
    kind: Literal["editWord"] = NoteKind.EDIT_WORD


class EditDefinitionNote(NoteBase):
    kind: Literal["editDef"] = NoteKind.EDIT_DEF
    opred_id: str = Field(..., alias="opredId")

    @field_validator("opred_id", mode="before")
    @classmethod
    def _opred_id_as_str(cls, v):
        if isinstance(v, bool):
            return str(int(v))
        if isinstance(v, int):
            return str(v)
        return v


class AddDefinitionNote(NoteBase):
    kind: Literal["addDefinition"] = NoteKind.ADD_DEFINITION


class UnknownNote(NoteBase):
    kind: Optional[Any] = None
    _raw: Optional[str] = PrivateAttr(default=None)

    @property
    def raw(self) -> Optional[str]:
        return self._raw

    def with_tags(self, tags: List[int]) -> "NoteBase":
        # Unparseable text cannot be merged into; start a fresh object
        if self._raw is not None:
            return NewWordNote(tags=list(tags))
        return super().with_tags(tags)


Note = Union[NewWordNote, EditWordNote, EditDefinitionNote, AddDefinitionNote, UnknownNote]

_NOTE_MODELS = {
    None: NewWordNote,
    NoteKind.NEW_WORD: NewWordNote,
    NoteKind.EDIT_WORD: EditWordNote,
    NoteKind.EDIT_DEF: EditDefinitionNote,
    NoteKind.ADD_DEFINITION: AddDefinitionNote,
}


def _unknown(raw: str) -> UnknownNote:
    note = UnknownNote()
    note._raw = raw
    return note


def parse_note(raw: Optional[str]) -> Note:
    """Parse a stored note. Never raises; malformed input becomes ``UnknownNote``."""
    if raw is None or not raw.strip():
        return NewWordNote()
    try:
        data = json.loads(raw)
    except ValueError:
        return _unknown(raw)
    if not isinstance(data, dict):
        return _unknown(raw)

    kind = data.get("kind")
    model = _NOTE_MODELS.get(kind) if isinstance(kind, str) or kind is None else None
    if model is EditDefinitionNote:
        opred_id = _as_int(data.get("opredId"))
        if opred_id is None:
            # editDef without a usable target behaves like plain new content
            model = UnknownNote
        else:
            data["opredId"] = str(opred_id)
    if model is None:
        model = UnknownNote
    try:
        return model.model_validate(data)
    except ValidationError:
        return _unknown(raw)


def dump_note(note: NoteBase) -> str:
    """Serialise a note back to the JSON stored in the ``note`` column."""
    if isinstance(note, UnknownNote) and note.raw is not None:
        return note.raw
    body = note.model_dump(by_alias=True, exclude_unset=True)
    kind = getattr(note, "kind", None)
    if isinstance(note, EditDefinitionNote):
        body["opredId"] = note.opred_id
    if kind is not None:
        body = {"kind": kind, **{k: v for k, v in body.items() if k != "kind"}}
    # Compact separators: the editor-scope list filter matches on '"createdBy":"<label>"'
    return json.dumps(body, ensure_ascii=False, separators=(",", ":"))


def note_created_by(raw: Optional[str]) -> Optional[str]:
    return parse_note(raw).created_by
