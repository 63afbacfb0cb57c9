"""Note storage.

Notes always belong to a contact. The store never checks the owner
itself: the foreign key rejects unknown contacts and removes notes when
their contact is deleted.
"""

from typing import List, Optional

from sqlalchemy import delete, select

from . import models
from .crud import BaseStore
from .mapping import advance_timestamp, merge_patch, note_fields, to_note, utc_now_iso
from .schemas import NoteCategory, NoteCreate, NoteOut, NoteUpdate


class NoteStore(BaseStore):
    """CRUD for notes about contacts."""

    async def create(self, data: NoteCreate) -> NoteOut:
        """
        Insert a note for an existing contact.

        Args:
            data (NoteCreate): Note data.

        Raises:
            ConstraintViolation: If ``user_id`` matches no contact.

        Returns:
            NoteOut: Stored note with its assigned id.
        """
        now = utc_now_iso()
        note = models.Note(
            user_id=data.user_id,
            category=NoteCategory(data.category).value,
            content=data.content,
            created_at=now,
            updated_at=now,
        )
        async with self.database.session() as db:
            db.add(note)
            await self.commit(db, f"create note for contact {data.user_id}")
            return to_note(note)

    async def get_all(self) -> List[NoteOut]:
        async with self.database.session() as db:
            result = await db.scalars(select(models.Note).order_by(models.Note.id))
            return [to_note(note) for note in result.all()]

    async def get_by_id(self, note_id: int) -> Optional[NoteOut]:
        async with self.database.session() as db:
            note = await db.get(models.Note, note_id)
            return to_note(note) if note is not None else None

    async def get_by_user_id(self, user_id: int) -> List[NoteOut]:
        """Return the notes of one contact, most recent first."""
        stmt = (
            select(models.Note)
            .where(models.Note.user_id == user_id)
            .order_by(models.Note.created_at.desc(), models.Note.id.desc())
        )
        async with self.database.session() as db:
            result = await db.scalars(stmt)
            return [to_note(note) for note in result.all()]

    async def update(self, note_id: int, patch: NoteUpdate) -> bool:
        """
        Apply a partial update to a note.

        Fields missing from ``patch`` keep their stored value; ``updatedAt``
        is always refreshed.

        Returns:
            bool: ``False`` if the note does not exist, ``True`` otherwise.
        """
        async with self.database.session() as db:
            note = await db.get(models.Note, note_id)
            if note is None:
                return False

            values = merge_patch(note_fields(note), patch)
            note.content = values["content"]
            note.category = NoteCategory(values["category"]).value
            note.updated_at = advance_timestamp(note.updated_at)

            await self.commit(db, f"update note {note_id}")
            return True

    async def delete(self, note_id: int) -> bool:
        async with self.database.session() as db:
            result = await db.execute(delete(models.Note).where(models.Note.id == note_id))
            await db.commit()
            return result.rowcount > 0
