from datetime import datetime
from typing import Optional, List

from sqlalchemy import String, Integer, DateTime, ForeignKey, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from crossdict.constants.pending import PendingStatus
from crossdict.models.base_model import Base, BigIntId
from crossdict.models.dictionary_model import Word, utc_now
from crossdict.models.language_model import Language


class PendingWord(Base):
    """
    Staged submission ("card"): a candidate word plus its candidate definitions.
    A card without descriptions but with ``target_word_id`` is a rename request.
    """
    __tablename__ = "pending_words"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    word_text: Mapped[str] = mapped_column(String(255), nullable=False)
    length: Mapped[int] = mapped_column(Integer, nullable=False)
    lang_id: Mapped[int] = mapped_column(ForeignKey("languages.id"), nullable=False)
    status: Mapped[str] = mapped_column(String(16), default=PendingStatus.PENDING.value,
                                        nullable=False, index=True)

    # Submission intent lives here as JSON, see schemas/note_payload.py
    note: Mapped[str] = mapped_column(Text, default="", nullable=False)

    target_word_id: Mapped[Optional[int]] = mapped_column(ForeignKey("word_v.id"), nullable=True)

    create_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    update_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    approved_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now,
                                                 server_default=func.now(), index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now,
                                                 onupdate=utc_now, server_default=func.now())

    descriptions: Mapped[List["PendingDescription"]] = relationship(
        back_populates="pending_word",
        cascade="all, delete-orphan",
        order_by=lambda: [PendingDescription.created_at, PendingDescription.id],
    )
    language: Mapped[Language] = relationship("Language")
    target_word: Mapped[Optional[Word]] = relationship("Word")

    def __repr__(self):
        return f'PendingWord(id:{self.id}, word_text:{self.word_text}, status:{self.status})'


class PendingDescription(Base):
    __tablename__ = "pending_descriptions"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    pending_word_id: Mapped[int] = mapped_column(
        ForeignKey("pending_words.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    difficulty: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    note: Mapped[str] = mapped_column(Text, default="", nullable=False)
    status: Mapped[str] = mapped_column(String(16), default=PendingStatus.PENDING.value, nullable=False)
    approved_opred_id: Mapped[Optional[int]] = mapped_column(ForeignKey("opred_v.id"), nullable=True)
    lang_id: Mapped[Optional[int]] = mapped_column(ForeignKey("languages.id"), nullable=True)

    create_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    update_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    approved_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now,
                                                 server_default=func.now())

    pending_word: Mapped[PendingWord] = relationship(back_populates="descriptions")

    def __repr__(self):
        return f'PendingDescription(id:{self.id}, pending_word_id:{self.pending_word_id}, status:{self.status})'
