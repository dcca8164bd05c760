"""
Who may see, edit, approve and reject pending cards.

Moderators (any role holding ``pending:review``) work on every card.
Editors only see and modify cards they created and can never approve.
"""
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from crossdict.auth.token_handler import TokenHandler
from crossdict.constants.pending import PendingScope, ROLE_EDITOR, PERMISSION_PENDING_REVIEW
from crossdict.database.setup import get_db
from crossdict.logging_config import setup_logger
from crossdict.repositories.permission_repository import RolePermissionRepository
from crossdict.schemas.note_payload import note_created_by

logger = setup_logger(__name__, "pending.log")


def get_numeric_user_id(raw: Union[int, str, None]) -> Optional[int]:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.strip():
        try:
            return int(raw.strip(), 10)
        except ValueError:
            return None
    return None


@dataclass(frozen=True)
class Principal:
    id: Optional[str] = None
    role: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_token(cls, payload: Mapping[str, Any]) -> "Principal":
        sub = payload.get('sub')
        return cls(
            id=str(sub) if sub is not None else None,
            role=payload.get('role'),
            email=payload.get('email'),
            name=payload.get('name'),
        )

    @property
    def label(self) -> str:
        return self.email or self.name or self.id or "unknown"

    @property
    def numeric_id(self) -> Optional[int]:
        return get_numeric_user_id(self.id)


@dataclass(frozen=True)
class PendingAccess:
    scope: PendingScope
    current_label: str
    user_id: Optional[int]

    @property
    def is_moderator(self) -> bool:
        return self.scope == PendingScope.ALL

    def is_created_by(self, create_by: Optional[int], note: Optional[str]) -> bool:
        """Numeric id match first, ``createdBy`` label in the note for cards older than numeric ids."""
        if create_by is not None and self.user_id is not None and create_by == self.user_id:
            return True
        return note_created_by(note) == self.current_label

    def can_modify(self, create_by: Optional[int], note: Optional[str]) -> bool:
        if self.is_moderator:
            return True
        return self.is_created_by(create_by, note)

    def require_moderator(self) -> None:
        if not self.is_moderator:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


async def ensure_pending_access(db: AsyncSession, principal: Optional[Principal]) -> PendingAccess:
    if principal is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    current_label = principal.label
    user_id = principal.numeric_id

    has_global = await RolePermissionRepository(db).has_permission(principal.role, PERMISSION_PENDING_REVIEW)
    if has_global:
        return PendingAccess(scope=PendingScope.ALL, current_label=current_label, user_id=user_id)

    if principal.role == ROLE_EDITOR:
        return PendingAccess(scope=PendingScope.OWN, current_label=current_label, user_id=user_id)

    logger.warning(f"Pending access denied for {current_label} with role {principal.role}")
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


async def get_principal(user_info: dict = Depends(TokenHandler.verify_access_token)) -> Principal:
    return Principal.from_token(user_info)


async def get_pending_access(
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(get_principal),
) -> PendingAccess:
    return await ensure_pending_access(db, principal)
