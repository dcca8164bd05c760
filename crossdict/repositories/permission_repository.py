from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crossdict.models.permission_model import RolePermission


class RolePermissionRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def has_permission(self, role: Optional[str], permission: str) -> bool:
        if not role:
            return False
        result = await self.db.execute(
            select(RolePermission.role).where(
                RolePermission.role == role,
                RolePermission.permission == permission,
            ).limit(1)
        )
        return result.scalar_one_or_none() is not None
