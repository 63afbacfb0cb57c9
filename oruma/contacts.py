"""Contact storage.

:class:`ContactStore` implements CRUD over contacts, lookup by native id,
the deduplicating bulk import used for device address books, and the
listing that joins note counts onto contacts.
"""

import logging
import uuid
from typing import Any, Iterable, List, Mapping, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError

from . import models
from .crud import BaseStore
from .errors import TransactionFailure
from .mapping import (
    advance_timestamp,
    contact_fields,
    merge_patch,
    to_contact,
    to_contact_with_count,
    utc_now_iso,
)
from .schemas import (
    ContactCategory,
    ContactCreate,
    ContactOut,
    ContactUpdate,
    ContactWithNoteCount,
)


logger = logging.getLogger(__name__)


def _new_contact(data: ContactCreate, native_id: str, now: str) -> models.Contact:
    return models.Contact(
        native_id=native_id,
        first_name=data.first_name,
        last_name=data.last_name,
        category=ContactCategory(data.category).value,
        created_at=now,
        updated_at=now,
    )


def _as_create(record: ContactCreate | Mapping[str, Any]) -> ContactCreate:
    if isinstance(record, Mapping):
        return ContactCreate.model_validate(record)
    return record


class ContactStore(BaseStore):
    """CRUD and bulk import for contacts."""

    async def create(self, data: ContactCreate) -> ContactOut:
        """
        Insert a new contact.

        A native id is generated when ``data`` carries none.

        Args:
            data (ContactCreate): Contact data.

        Raises:
            ConstraintViolation: If the native id is already taken.

        Returns:
            ContactOut: Stored contact with its assigned id.
        """
        now = utc_now_iso()
        contact = _new_contact(data, data.native_id or str(uuid.uuid4()), now)

        async with self.database.session() as db:
            db.add(contact)
            await self.commit(db, f"create contact {contact.native_id!r}")
            return to_contact(contact)

    async def get_all(self) -> List[ContactOut]:
        """Return every contact in storage order."""
        async with self.database.session() as db:
            result = await db.scalars(select(models.Contact).order_by(models.Contact.id))
            return [to_contact(contact) for contact in result.all()]

    async def get_all_with_note_counts(self) -> List[ContactWithNoteCount]:
        """
        Return every contact with the number of its notes.

        Contacts without notes are included with a count of zero. Results
        are sorted by last name, then first name.

        Returns:
            list[ContactWithNoteCount]: Contacts with note counts.
        """
        stmt = (
            select(models.Contact, func.count(models.Note.id).label("note_count"))
            .outerjoin(models.Note, models.Note.user_id == models.Contact.id)
            .group_by(models.Contact.id)
            .order_by(
                models.Contact.last_name,
                models.Contact.first_name,
                models.Contact.id,
            )
        )
        async with self.database.session() as db:
            rows = (await db.execute(stmt)).all()
            return [to_contact_with_count(contact, count) for contact, count in rows]

    async def get_by_id(self, contact_id: int) -> Optional[ContactOut]:
        """
        Retrieve a contact by primary key.

        Returns:
            ContactOut | None: Contact if found, otherwise ``None``.
        """
        async with self.database.session() as db:
            contact = await db.get(models.Contact, contact_id)
            return to_contact(contact) if contact is not None else None

    async def get_by_native_id(self, native_id: str) -> Optional[ContactOut]:
        """
        Retrieve a contact by its native id.

        Returns:
            ContactOut | None: Contact if found, otherwise ``None``.
        """
        async with self.database.session() as db:
            contact = await db.scalar(
                select(models.Contact).where(models.Contact.native_id == native_id)
            )
            return to_contact(contact) if contact is not None else None

    async def update(self, contact_id: int, patch: ContactUpdate) -> bool:
        """
        Apply a partial update to a contact.

        Fields missing from ``patch`` keep their stored value; ``updatedAt``
        is always refreshed.

        Args:
            contact_id (int): Contact identifier.
            patch (ContactUpdate): Fields to change.

        Raises:
            ConstraintViolation: If the new native id belongs to another contact.

        Returns:
            bool: ``False`` if the contact does not exist, ``True`` otherwise.
        """
        async with self.database.session() as db:
            contact = await db.get(models.Contact, contact_id)
            if contact is None:
                return False

            values = merge_patch(contact_fields(contact), patch)
            contact.native_id = values["native_id"]
            contact.first_name = values["first_name"]
            contact.last_name = values["last_name"]
            contact.category = ContactCategory(values["category"]).value
            contact.updated_at = advance_timestamp(contact.updated_at)

            await self.commit(db, f"update contact {contact_id}")
            return True

    async def delete(self, contact_id: int) -> bool:
        """
        Delete a contact together with its notes.

        Returns:
            bool: ``True`` if a contact was removed.
        """
        async with self.database.session() as db:
            result = await db.execute(
                delete(models.Contact).where(models.Contact.id == contact_id)
            )
            await db.commit()
            return result.rowcount > 0

    async def batch_save(
        self, records: Iterable[ContactCreate | Mapping[str, Any]]
    ) -> int:
        """
        Insert contacts whose native id is not stored yet.

        Candidates matching an existing contact, or an earlier candidate of
        the same batch, are skipped. The whole batch runs in one
        transaction.

        Args:
            records (Iterable): ``ContactCreate`` instances or mappings of
                the same shape.

        Raises:
            TransactionFailure: If any insert fails. Nothing is persisted.

        Returns:
            int: Number of contacts inserted.
        """
        candidates = [_as_create(record) for record in records]
        if not candidates:
            return 0

        logger.info("Importing %d contacts", len(candidates))
        now = utc_now_iso()
        seen: set[str] = set()
        inserted = 0

        async with self.database.session() as db:
            try:
                async with db.begin():
                    for data in candidates:
                        native_id = data.native_id or str(uuid.uuid4())
                        if native_id in seen:
                            continue
                        seen.add(native_id)

                        existing = await db.scalar(
                            select(models.Contact.id).where(
                                models.Contact.native_id == native_id
                            )
                        )
                        if existing is not None:
                            continue

                        db.add(_new_contact(data, native_id, now))
                        inserted += 1
            except SQLAlchemyError as exc:
                logger.error("Contact import rolled back", exc_info=exc)
                raise TransactionFailure(
                    f"Contact import of {len(candidates)} records failed"
                ) from exc

        logger.info(
            "Imported %d contacts, skipped %d", inserted, len(candidates) - inserted
        )
        return inserted

    async def import_device_contacts(self, records: Iterable[Mapping[str, Any]]) -> int:
        """
        Import address-book entries read from the device.

        Entries that cannot be mapped to a contact are skipped.

        Args:
            records (Iterable[Mapping]): Entries with ``id``, ``firstName``
                and ``lastName``.

        Returns:
            int: Number of contacts inserted.
        """
        candidates = []
        for record in records:
            try:
                candidates.append(ContactCreate.from_device_record(record))
            except ValueError as exc:
                logger.warning("Skipping device contact: %s", exc)
        return await self.batch_save(candidates)
