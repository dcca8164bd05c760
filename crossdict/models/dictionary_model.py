from datetime import datetime, timezone
from typing import Optional, List

from sqlalchemy import String, Integer, Boolean, DateTime, ForeignKey, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from crossdict.models.base_model import Base, BigIntId
from crossdict.models.language_model import Language


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Word(Base):
    """Live dictionary word. Soft-deleted through ``is_deleted``."""
    __tablename__ = "word_v"
    __table_args__ = (
        UniqueConstraint("word_text", "lang_id", name="uq_word_v_text_lang"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    word_text: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    length: Mapped[int] = mapped_column(Integer, nullable=False)
    lang_id: Mapped[int] = mapped_column(ForeignKey("languages.id"), nullable=False)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    create_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    update_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    approved_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now,
                                                 server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now,
                                                 onupdate=utc_now, server_default=func.now())

    language: Mapped[Language] = relationship("Language")
    definitions: Mapped[List["Definition"]] = relationship(back_populates="word")

    def __repr__(self):
        return f'Word(id:{self.id}, word_text:{self.word_text}, lang_id:{self.lang_id})'


class Definition(Base):
    """Live definition ("opred"). ``end_date`` NULL or in the future means active."""
    __tablename__ = "opred_v"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    word_id: Mapped[int] = mapped_column(ForeignKey("word_v.id"), nullable=False, index=True)
    text_opr: Mapped[str] = mapped_column(Text, nullable=False)
    length: Mapped[int] = mapped_column(Integer, nullable=False)
    lang_id: Mapped[int] = mapped_column(ForeignKey("languages.id"), nullable=False)
    difficulty: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    text_updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    create_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    update_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    approved_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now,
                                                 server_default=func.now())

    word: Mapped[Word] = relationship(back_populates="definitions")
    tags: Mapped[List["DefinitionTag"]] = relationship(back_populates="definition",
                                                       cascade="all, delete-orphan")

    def __repr__(self):
        return f'Definition(id:{self.id}, word_id:{self.word_id}, text_opr:{self.text_opr!r})'


class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)


class DefinitionTag(Base):
    __tablename__ = "opred_tags"

    opred_id: Mapped[int] = mapped_column(ForeignKey("opred_v.id", ondelete="CASCADE"), primary_key=True)
    tag_id: Mapped[int] = mapped_column(ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True)
    added_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now,
                                                 server_default=func.now())

    definition: Mapped[Definition] = relationship(back_populates="tags")
    tag: Mapped[Tag] = relationship("Tag", lazy="joined")
