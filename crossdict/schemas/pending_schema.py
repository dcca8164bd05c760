from datetime import datetime
from typing import Optional, List, Dict, Any, Union

from pydantic import BaseModel, Field, field_validator, model_validator


class PendingEditSchema(BaseModel):
    """
    Moderation form for one card. Description fields come as a flat map:
    ``desc_text_<id>``, ``desc_diff_<id>``, ``desc_end_<id>``, ``desc_tags_<id>``.
    """
    language: Optional[str] = None
    word: Optional[str] = None
    fields: Dict[str, Any] = Field(default_factory=dict)
    delete_desc_ids: List[Union[str, int]] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "language": "ru",
                "word": "тест",
                "fields": {"desc_text_12": "проверка", "desc_diff_12": "2", "desc_tags_12": "[5, 7]"},
                "delete_desc_ids": ["13"]
            }
        }


class DefinitionDraftSchema(BaseModel):
    definition: str = Field(..., min_length=1)
    note: Optional[str] = Field(None, max_length=512)
    tags: Optional[List[int]] = None
    difficulty: Optional[int] = Field(None, ge=0)
    end_date: Optional[datetime] = None


class NewWordSubmissionSchema(BaseModel):
    word: str = Field(..., min_length=1)
    definitions: Optional[List[DefinitionDraftSchema]] = None
    definition: Optional[str] = None
    note: Optional[str] = Field(None, max_length=512)
    language: str = Field(default="ru", min_length=1)
    tags: Optional[List[int]] = None
    difficulty: Optional[int] = Field(None, ge=0)
    end_date: Optional[datetime] = None

    @model_validator(mode='after')
    def require_definition(self):
        if self.definitions:
            return self
        if not self.definition:
            raise ValueError('Definition is required')
        return self

    def definition_drafts(self) -> List[DefinitionDraftSchema]:
        if self.definitions:
            return self.definitions
        return [DefinitionDraftSchema(
            definition=self.definition,
            note=self.note,
            tags=self.tags,
            difficulty=self.difficulty,
            end_date=self.end_date,
        )]


class DefinitionSubmissionSchema(BaseModel):
    word_id: str = Field(..., min_length=1)
    definition: str = Field(..., min_length=1)
    note: Optional[str] = Field(None, max_length=512)
    language: str = Field(default="ru", min_length=1)
    tags: Optional[List[int]] = None

    @field_validator('word_id', mode='before')
    @classmethod
    def word_id_as_str(cls, v):
        return str(v) if isinstance(v, int) else v


class WordRenameSchema(BaseModel):
    word_text: str = Field(..., min_length=1)
    note: Optional[str] = Field(None, max_length=512)


class DefinitionEditSchema(BaseModel):
    text_opr: str = Field(..., min_length=1)
    note: Optional[str] = Field(None, max_length=512)
    tags: Optional[List[int]] = None
    difficulty: Optional[int] = Field(None, ge=0)
    end_date: Optional[datetime] = None


class PendingDescriptionResponse(BaseModel):
    id: str
    description: str
    difficulty: int
    end_date: Optional[datetime] = None
    status: str
    approved_opred_id: Optional[str] = None
    kind: Optional[str] = None
    opred_id: Optional[str] = None
    tags: List[int] = []
    text: Optional[str] = None
    created_by: Optional[int] = None


class PendingWordResponse(BaseModel):
    id: str
    word_text: str
    length: int
    language: Optional[str] = None
    status: str
    kind: Optional[str] = None
    created_by_label: Optional[str] = None
    created_by: Optional[int] = None
    target_word_id: Optional[str] = None
    target_word_text: Optional[str] = None
    note_text: Optional[str] = None
    created_at: Optional[datetime] = None
    descriptions: List[PendingDescriptionResponse] = []


class PendingCountResponse(BaseModel):
    total: int
    words: int
    descriptions: int


class SubmissionCreatedResponse(BaseModel):
    success: bool = True
    id: str
    status: str = "PENDING"


class ActionResponse(BaseModel):
    success: bool = True
