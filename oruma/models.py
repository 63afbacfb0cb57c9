"""Database models for contacts and notes.

This module defines the SQLAlchemy ORM models backing the storage layer.
Column names follow the persisted schema (``nativeID``, ``firstName``...),
attribute names are snake_case.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Integer,
    String,
    Text,
)
from .database import Base
from .schemas import ContactCategory, NoteCategory


def _in_clause(column: str, enum_cls) -> str:
    values = ", ".join(f"'{member.value}'" for member in enum_cls)
    return f"{column} IN ({values})"


class Contact(Base):
    """
    SQLAlchemy model representing a contact.

    ``nativeID`` is the natural key used to deduplicate imports and is
    unique across all contacts.
    """

    __tablename__ = "contacts"
    __table_args__ = (
        CheckConstraint(
            _in_clause("category", ContactCategory), name="ck_contacts_category"
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    native_id = Column("nativeID", String, unique=True, nullable=False)
    first_name = Column("firstName", String, nullable=False)
    last_name = Column("lastName", String, nullable=False)
    category = Column(
        String,
        nullable=False,
        default=ContactCategory.ALL.value,
        server_default=ContactCategory.ALL.value,
    )
    created_at = Column("createdAt", String, nullable=False)
    updated_at = Column("updatedAt", String, nullable=False)


class Note(Base):
    """
    SQLAlchemy model representing a free-form note about a contact.

    ``userId`` references ``contacts.id``; deleting the contact deletes
    the note through ``ON DELETE CASCADE``.
    """

    __tablename__ = "notes"
    __table_args__ = (
        CheckConstraint(
            _in_clause("category", NoteCategory), name="ck_notes_category"
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    #: Identifier of the owning contact
    user_id = Column(
        "userId",
        Integer,
        ForeignKey("contacts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column("createdAt", String, nullable=False)
    updated_at = Column("updatedAt", String, nullable=False)
