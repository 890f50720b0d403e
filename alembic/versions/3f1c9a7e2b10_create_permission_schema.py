"""create_permission_schema

Revision ID: 3f1c9a7e2b10
Revises:
Create Date: 2026-10-17 09:12:44.518203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7e2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create the users, grants, role templates and account hierarchy tables.

    Creates:
    - users, user_permissions
    - role_templates, system_roles
    - accounts (self-referencing parent_id)
    - account_memberships, membership_roles
    - account_users
    """
    # 1. Users and direct grants
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('auth_user_id', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=12), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_auth_user_id'), 'users', ['auth_user_id'], unique=True)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=False)

    op.create_table(
        'user_permissions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('permission_name', sa.String(length=100), nullable=False),
        sa.Column('resource', sa.String(length=50), nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('scope', sa.String(length=10), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'permission_name', 'scope', name='uq_user_permission_scope')
    )
    op.create_index(op.f('ix_user_permissions_user_id'), 'user_permissions', ['user_id'], unique=False)

    # 2. Role templates and global assignments
    op.create_table(
        'role_templates',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.Column('inherit_all_permissions', sa.Boolean(), nullable=False),
        sa.Column('is_system_role', sa.Boolean(), nullable=False),
        sa.Column('scope', sa.String(length=7), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )

    op.create_table(
        'system_roles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('role_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['role_id'], ['role_templates.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'role_id', name='uq_system_role_user_role')
    )
    op.create_index(op.f('ix_system_roles_user_id'), 'system_roles', ['user_id'], unique=False)

    # 3. Account hierarchy
    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('account_type', sa.String(length=12), nullable=False),
        sa.Column('parent_id', sa.Integer(), nullable=True),
        sa.Column('company_name', sa.String(length=255), nullable=True),
        sa.Column('domains', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['parent_id'], ['accounts.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_accounts_parent_id'), 'accounts', ['parent_id'], unique=False)

    # 4. Memberships and their role templates
    op.create_table(
        'account_memberships',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'account_id', name='uq_membership_user_account')
    )
    op.create_index(op.f('ix_account_memberships_user_id'), 'account_memberships', ['user_id'], unique=False)
    op.create_index(op.f('ix_account_memberships_account_id'), 'account_memberships', ['account_id'], unique=False)

    op.create_table(
        'membership_roles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('membership_id', sa.Integer(), nullable=False),
        sa.Column('role_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['membership_id'], ['account_memberships.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['role_id'], ['role_templates.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('membership_id', 'role_id', name='uq_membership_role')
    )
    op.create_index(op.f('ix_membership_roles_membership_id'), 'membership_roles', ['membership_id'], unique=False)

    # 5. Customer-side account users
    op.create_table(
        'account_users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('invitation_token', sa.String(length=255), nullable=True),
        sa.Column('invitation_expiry', sa.DateTime(), nullable=True),
        sa.Column('permissions', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id')
    )
    op.create_index(op.f('ix_account_users_account_id'), 'account_users', ['account_id'], unique=False)
    op.create_index(op.f('ix_account_users_email'), 'account_users', ['email'], unique=False)
    op.create_index(op.f('ix_account_users_invitation_token'), 'account_users', ['invitation_token'], unique=True)


def downgrade() -> None:
    """Drop every table in reverse dependency order."""
    op.drop_index(op.f('ix_account_users_invitation_token'), table_name='account_users')
    op.drop_index(op.f('ix_account_users_email'), table_name='account_users')
    op.drop_index(op.f('ix_account_users_account_id'), table_name='account_users')
    op.drop_table('account_users')

    op.drop_index(op.f('ix_membership_roles_membership_id'), table_name='membership_roles')
    op.drop_table('membership_roles')

    op.drop_index(op.f('ix_account_memberships_account_id'), table_name='account_memberships')
    op.drop_index(op.f('ix_account_memberships_user_id'), table_name='account_memberships')
    op.drop_table('account_memberships')

    op.drop_index(op.f('ix_accounts_parent_id'), table_name='accounts')
    op.drop_table('accounts')

    op.drop_index(op.f('ix_system_roles_user_id'), table_name='system_roles')
    op.drop_table('system_roles')
    op.drop_table('role_templates')

    op.drop_index(op.f('ix_user_permissions_user_id'), table_name='user_permissions')
    op.drop_table('user_permissions')

    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_index(op.f('ix_users_auth_user_id'), table_name='users')
    op.drop_table('users')
