
from sqlalchemy.orm import mapped_column, Mapped
from sqlalchemy import String, Integer

from crossdict.models.base_model import Base


class Language(Base):
    __tablename__ = "languages"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    code: Mapped[str] = mapped_column(String(8), unique=True, index=True)  # ru, en, uk
    name: Mapped[str] = mapped_column(String(50))

    def __repr__(self):
        return f'Language(id:{self.id}, code:{self.code})'
