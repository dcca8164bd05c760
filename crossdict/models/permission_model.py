from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from crossdict.models.base_model import Base


class RolePermission(Base):
    """Role -> permission code rows, e.g. ("CHIEF_EDITOR", "pending:review")."""
    __tablename__ = "role_permissions"

    role: Mapped[str] = mapped_column(String(32), primary_key=True)
    permission: Mapped[str] = mapped_column(String(64), primary_key=True)

    def __repr__(self):
        return f'RolePermission(role:{self.role}, permission:{self.permission})'
