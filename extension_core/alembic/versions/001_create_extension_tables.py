"""create extension registry and provisioning tables

Revision ID: 001
Revises: 
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Хост мог уже создать таблицы через Base.metadata.create_all,
    # поэтому создаем только отсутствующие
    from alembic import context
    bind = context.get_bind()
    existing = set(sa.inspect(bind).get_table_names())

    if 'extensions' not in existing:
        op.create_table(
            'extensions',
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('namespace', sa.String(128), nullable=False),
            sa.Column('name', sa.String(255), nullable=False),
            sa.Column('version', sa.String(64), nullable=False),
            sa.Column('author', sa.String(128), nullable=True),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('status', sa.String(32), nullable=False, server_default='pending'),
            sa.Column('enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('pending_disable', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('dependencies', sa.JSON(), nullable=False),
            sa.Column('last_error', sa.Text(), nullable=True),
            sa.Column('installed_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
        )
        op.create_index('ix_extensions_namespace', 'extensions', ['namespace'], unique=True)

    if 'host_flags' not in existing:
        op.create_table(
            'host_flags',
            sa.Column('name', sa.String(64), primary_key=True),
            sa.Column('value', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
        )

    if 'settings' not in existing:
        op.create_table(
            'settings',
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('namespace', sa.String(128), nullable=False),
            sa.Column('key', sa.String(128), nullable=False),
            sa.Column('value', sa.JSON(), nullable=True),
            sa.Column('kind', sa.String(32), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.UniqueConstraint('namespace', 'key', name='uq_settings_namespace_key'),
        )
        op.create_index('ix_settings_namespace', 'settings', ['namespace'])

    if 'permissions' not in existing:
        op.create_table(
            'permissions',
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('name', sa.String(255), nullable=False),
            sa.Column('namespace', sa.String(128), nullable=False),
            sa.Column('description', sa.Text(), nullable=False, server_default=''),
            sa.Column('created_at', sa.DateTime(), nullable=False),
        )
        op.create_index('ix_permissions_name', 'permissions', ['name'], unique=True)
        op.create_index('ix_permissions_namespace', 'permissions', ['namespace'])

    if 'roles' not in existing:
        op.create_table(
            'roles',
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('name', sa.String(64), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('source', sa.String(32), nullable=False, server_default='user'),
            sa.Column('created_at', sa.DateTime(), nullable=False),
        )
        op.create_index('ix_roles_name', 'roles', ['name'], unique=True)

    if 'role_permissions' not in existing:
        op.create_table(
            'role_permissions',
            sa.Column('role_id', sa.Integer(), sa.ForeignKey('roles.id', ondelete='CASCADE'), primary_key=True),
            sa.Column('permission_id', sa.Integer(), sa.ForeignKey('permissions.id', ondelete='CASCADE'), primary_key=True),
        )


def downgrade() -> None:
    op.drop_table('role_permissions')
    op.drop_table('roles')
    op.drop_table('permissions')
    op.drop_table('settings')
    op.drop_table('host_flags')
    op.drop_table('extensions')
