"""Initial schema: rooms, containers, spots, items, documents

Revision ID: 3c1f9a2b7d40
Revises: 
Create Date: 2026-10-19 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3c1f9a2b7d40"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Detect database type
    bind = op.get_bind()
    is_postgresql = bind.dialect.name == "postgresql"
    is_sqlite = bind.dialect.name == "sqlite"

    # Use JSONB for PostgreSQL, JSON for SQLite
    if is_postgresql:
        file_paths_type = postgresql.JSONB(astext_type=sa.Text())
    else:
        file_paths_type = sa.JSON()

    # Timestamps are stored as naive UTC on every backend
    if is_sqlite:
        timestamp_default = sa.text("(datetime('now'))")
    else:
        timestamp_default = sa.text("(now() at time zone 'utc')")
    timestamp_type = sa.DateTime()

    def timestamps() -> list[sa.Column]:
        return [
            sa.Column("created_at", timestamp_type, server_default=timestamp_default, nullable=False),
            sa.Column("updated_at", timestamp_type, server_default=timestamp_default, nullable=False),
        ]

    # Create rooms table
    op.create_table(
        "rooms",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("icon", sa.String(length=100), nullable=True),
        *timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_rooms_name"), "rooms", ["name"], unique=False)
    op.create_index(op.f("ix_rooms_updated_at"), "rooms", ["updated_at"], unique=False)

    # Create containers table
    op.create_table(
        "containers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("room_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("is_favorite", sa.Boolean(), nullable=False),
        *timestamps(),
        sa.ForeignKeyConstraint(["room_id"], ["rooms.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_containers_room_id"), "containers", ["room_id"], unique=False)
    op.create_index(op.f("ix_containers_name"), "containers", ["name"], unique=False)
    op.create_index(op.f("ix_containers_is_favorite"), "containers", ["is_favorite"], unique=False)
    op.create_index(op.f("ix_containers_updated_at"), "containers", ["updated_at"], unique=False)

    # Create spots table
    op.create_table(
        "spots",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("container_id", sa.Integer(), nullable=False),
        sa.Column("label", sa.String(length=200), nullable=False),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("is_favorite", sa.Boolean(), nullable=False),
        *timestamps(),
        sa.ForeignKeyConstraint(["container_id"], ["containers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_spots_container_id"), "spots", ["container_id"], unique=False)
    op.create_index(op.f("ix_spots_label"), "spots", ["label"], unique=False)
    op.create_index(op.f("ix_spots_code"), "spots", ["code"], unique=True)
    op.create_index(op.f("ix_spots_is_favorite"), "spots", ["is_favorite"], unique=False)
    op.create_index(op.f("ix_spots_updated_at"), "spots", ["updated_at"], unique=False)

    # Create items table
    op.create_table(
        "items",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("spot_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=500), nullable=False),
        sa.Column("category", sa.String(length=200), nullable=True),
        sa.Column("keywords", sa.Text(), nullable=True),
        sa.Column("tags", sa.Text(), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("image_path", sa.String(length=1000), nullable=True),
        sa.Column("is_lent", sa.Boolean(), nullable=False),
        sa.Column("lent_to", sa.String(length=200), nullable=True),
        sa.Column("lent_date", timestamp_type, nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(["spot_id"], ["spots.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_items_spot_id"), "items", ["spot_id"], unique=False)
    op.create_index(op.f("ix_items_name"), "items", ["name"], unique=False)
    op.create_index(op.f("ix_items_category"), "items", ["category"], unique=False)
    op.create_index(op.f("ix_items_updated_at"), "items", ["updated_at"], unique=False)

    # Create documents table
    op.create_table(
        "documents",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("spot_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("doc_type", sa.String(length=200), nullable=True),
        sa.Column("person", sa.String(length=200), nullable=True),
        sa.Column("expiry_date", timestamp_type, nullable=True),
        sa.Column("tags", sa.Text(), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("file_paths", file_paths_type, nullable=False),
        *timestamps(),
        sa.ForeignKeyConstraint(["spot_id"], ["spots.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_documents_spot_id"), "documents", ["spot_id"], unique=False)
    op.create_index(op.f("ix_documents_title"), "documents", ["title"], unique=False)
    op.create_index(op.f("ix_documents_doc_type"), "documents", ["doc_type"], unique=False)
    op.create_index(op.f("ix_documents_person"), "documents", ["person"], unique=False)
    op.create_index(op.f("ix_documents_expiry_date"), "documents", ["expiry_date"], unique=False)
    op.create_index(op.f("ix_documents_updated_at"), "documents", ["updated_at"], unique=False)


def downgrade() -> None:
    # Children first
    for table, columns in (
        ("documents", ["updated_at", "expiry_date", "person", "doc_type", "title", "spot_id"]),
        ("items", ["updated_at", "category", "name", "spot_id"]),
        ("spots", ["updated_at", "is_favorite", "code", "label", "container_id"]),
        ("containers", ["updated_at", "is_favorite", "name", "room_id"]),
        ("rooms", ["updated_at", "name"]),
    ):
        for column in columns:
            op.drop_index(op.f(f"ix_{table}_{column}"), table_name=table)
        op.drop_table(table)
