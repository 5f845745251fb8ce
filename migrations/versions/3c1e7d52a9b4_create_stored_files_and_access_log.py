"""Create stored_files and access_log

Revision ID: 3c1e7d52a9b4
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1e7d52a9b4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'stored_files',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('key_digest', sa.String(length=255), nullable=False),
        sa.Column('uploader_ip', sa.String(length=45), nullable=False),
        sa.Column('uploaded_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('download_until', sa.DateTime(timezone=True), nullable=False),
        sa.Column('encrypted_metadata', sa.LargeBinary(length=255), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_stored_files_download_until',
        'stored_files',
        ['download_until'],
        unique=False,
    )
    op.create_index(
        'ix_stored_files_uploader_ip_uploaded_at',
        'stored_files',
        ['uploader_ip', 'uploaded_at'],
        unique=False,
    )

    op.create_table(
        'access_log',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('file_id', sa.Uuid(), nullable=False),
        sa.Column('attempt', sa.Integer(), nullable=False),
        sa.Column('ip', sa.String(length=45), nullable=False),
        sa.Column('date_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('successful', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['file_id'], ['stored_files.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('file_id', 'attempt', name='uq_access_log_file_id_attempt'),
    )
    op.create_index('ix_access_log_file_id', 'access_log', ['file_id'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_access_log_file_id', table_name='access_log')
    op.drop_table('access_log')
    op.drop_index('ix_stored_files_uploader_ip_uploaded_at', table_name='stored_files')
    op.drop_index('ix_stored_files_download_until', table_name='stored_files')
    op.drop_table('stored_files')
