from __future__ import annotations

from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, Text, Boolean, ForeignKey, Table, UniqueConstraint
from sqlalchemy import JSON
from sqlalchemy.orm import relationship

from .db import Base
from .constants import EXTENSION_STATUS_PENDING, ROLE_SOURCE_USER


# ============= EXTENSION REGISTRY =============


class Extension(Base):
    """Persisted state of one extension, keyed by namespace."""
    __tablename__ = "extensions"
    id = Column(Integer, primary_key=True, autoincrement=True)
    namespace = Column(String(128), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    version = Column(String(64), nullable=False, default="1.0.0")
    author = Column(String(128), nullable=True)
    description = Column(Text, nullable=True)
    # pending | installed | failed
    status = Column(String(32), nullable=False, default=EXTENSION_STATUS_PENDING)
    # enabled - разрешено ли к загрузке (persisted, отличается от descriptor.enabled)
    enabled = Column(Boolean, nullable=False, default=True)
    # pending_disable - отключение ждет перезапуска хоста
    pending_disable = Column(Boolean, nullable=False, default=False)
    # Только информационное поле, порядок загрузки не меняет
    dependencies = Column(JSON, nullable=False, default=list)
    last_error = Column(Text, nullable=True)
    installed_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "namespace": self.namespace,
            "name": self.name,
            "version": self.version,
            "author": self.author,
            "description": self.description,
            "status": self.status,
            "enabled": self.enabled,
            "pending_disable": self.pending_disable,
            "dependencies": list(self.dependencies or []),
            "last_error": self.last_error,
            "installed_at": self.installed_at.isoformat() if self.installed_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class HostFlag(Base):
    """Host-wide persisted markers, e.g. restart_required."""
    __tablename__ = "host_flags"
    name = Column(String(64), primary_key=True)
    value = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


# ============= PROVISIONING TARGETS =============


class Setting(Base):
    __tablename__ = "settings"
    __table_args__ = (UniqueConstraint("namespace", "key", name="uq_settings_namespace_key"),)
    id = Column(Integer, primary_key=True, autoincrement=True)
    namespace = Column(String(128), index=True, nullable=False)
    key = Column(String(128), nullable=False)
    value = Column(JSON, nullable=True)
    kind = Column(String(32), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column("permission_id", Integer, ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True),
)


class Permission(Base):
    __tablename__ = "permissions"
    id = Column(Integer, primary_key=True, autoincrement=True)
    # <namespace>:<resource>.<action>
    name = Column(String(255), unique=True, index=True, nullable=False)
    namespace = Column(String(128), index=True, nullable=False)
    description = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Role(Base):
    __tablename__ = "roles"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(64), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    # system - создана расширением, user - администратором
    source = Column(String(32), nullable=False, default=ROLE_SOURCE_USER)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    permissions = relationship("Permission", secondary=role_permissions, lazy="selectin")
