"""
Permission/Role collaborators: права доступа и роли.

Имя права: ``<namespace>:<resource>.<action>``; namespace в имени
должен совпадать с namespace расширения.
"""
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..constants import ROLE_SOURCE_SYSTEM
from ..db import session_scope
from ..errors import PermissionValidationError, ProvisioningError
from ..models import Permission, Role

logger = logging.getLogger(__name__)

PERMISSION_NAME_RE = re.compile(
    r"^(?P<namespace>[a-z0-9][a-z0-9-_]*):(?P<resource>[a-z0-9][a-z0-9-_]*)\.(?P<action>[a-z0-9][a-z0-9-_]*)$",
    re.IGNORECASE,
)


@dataclass
class PermissionRecord:
    id: int
    name: str
    namespace: str
    description: str

    @classmethod
    def from_model(cls, permission: Permission) -> "PermissionRecord":
        return cls(
            id=permission.id,
            name=permission.name,
            namespace=permission.namespace,
            description=permission.description or "",
        )


@dataclass
class RoleRecord:
    id: int
    name: str
    source: str
    description: Optional[str] = None
    permission_ids: List[int] = field(default_factory=list)
    permission_names: List[str] = field(default_factory=list)

    @classmethod
    def from_model(cls, role: Role) -> "RoleRecord":
        return cls(
            id=role.id,
            name=role.name,
            source=role.source,
            description=role.description,
            permission_ids=[p.id for p in role.permissions],
            permission_names=[p.name for p in role.permissions],
        )


def validate_permission_name(namespace: str, name: str) -> None:
    match = PERMISSION_NAME_RE.match(name or "")
    if not match:
        raise PermissionValidationError(
            f"Invalid permission name '{name}'. Expected format: <namespace>:<resource>.<action>"
        )
    if match.group("namespace") != namespace:
        raise PermissionValidationError(
            f"Permission namespace mismatch. The namespace in '{name}' must be '{namespace}'."
        )


class PermissionService:
    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def create_permission(self, namespace: str, name: str, description: str = "") -> PermissionRecord:
        validate_permission_name(namespace, name)

        permission = Permission(
            name=name,
            namespace=namespace,
            description=description or "",
            created_at=datetime.utcnow(),
        )
        try:
            async with self.session_maker() as db:
                db.add(permission)
                await db.commit()
        except IntegrityError as e:
            raise ProvisioningError(f"Permission '{name}' already exists") from e
        logger.debug(f"💾 Created permission {name}")
        return PermissionRecord.from_model(permission)

    async def find_permissions(self, namespace: Optional[str] = None) -> List[PermissionRecord]:
        async with session_scope(self.session_maker) as db:
            query = select(Permission).order_by(Permission.id)
            if namespace:
                query = query.where(Permission.namespace == namespace)
            result = await db.execute(query)
            return [PermissionRecord.from_model(p) for p in result.scalars().all()]


class RoleService:
    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def find_roles(self) -> List[RoleRecord]:
        async with session_scope(self.session_maker) as db:
            result = await db.execute(select(Role).order_by(Role.id))
            return [RoleRecord.from_model(r) for r in result.scalars().all()]

    async def create_role(
        self,
        name: str,
        permissions: Sequence[int] = (),
        source: str = ROLE_SOURCE_SYSTEM,
        description: Optional[str] = None,
    ) -> RoleRecord:
        async with session_scope(self.session_maker) as db:
            permission_models = await self._load_permissions(db, permissions)
            role = Role(
                name=name,
                description=description,
                source=source,
                created_at=datetime.utcnow(),
                permissions=permission_models,
            )
            db.add(role)
            await db.flush()
            logger.info(f"👥 Created role {name} with {len(permission_models)} permission(s)")
            return RoleRecord.from_model(role)

    async def update_role(
        self,
        role_id: int,
        source: Optional[str] = None,
        description: Optional[str] = None,
    ) -> RoleRecord:
        async with session_scope(self.session_maker) as db:
            role = await db.get(Role, role_id)
            if role is None:
                raise ProvisioningError(f"Role with id {role_id} not found")
            if source is not None:
                role.source = source
            if description is not None:
                role.description = description
            await db.flush()
            logger.info(f"👥 Updated role {role.name} (source={role.source})")
            return RoleRecord.from_model(role)

    async def assign_permissions(self, role_id: int, permission_ids: Sequence[int]) -> RoleRecord:
        """Добавить права к роли (объединение, повторный вызов ничего не меняет)."""
        async with session_scope(self.session_maker) as db:
            role = await db.get(Role, role_id)
            if role is None:
                raise ProvisioningError(f"Role with id {role_id} not found")

            bound = {p.id for p in role.permissions}
            for permission in await self._load_permissions(db, permission_ids):
                if permission.id not in bound:
                    role.permissions.append(permission)
                    bound.add(permission.id)
            await db.flush()
            return RoleRecord.from_model(role)

    @staticmethod
    async def _load_permissions(db: AsyncSession, permission_ids: Sequence[int]) -> List[Permission]:
        if not permission_ids:
            return []
        result = await db.execute(select(Permission).where(Permission.id.in_(list(permission_ids))))
        found = list(result.scalars().all())
        missing = set(permission_ids) - {p.id for p in found}
        if missing:
            raise ProvisioningError(f"Permissions not found: {sorted(missing)}")
        return found


__all__ = [
    "PermissionService",
    "RoleService",
    "PermissionRecord",
    "RoleRecord",
    "validate_permission_name",
    "PERMISSION_NAME_RE",
]
