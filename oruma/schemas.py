from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ContactCategory(str, Enum):
    """Grouping a contact is filed under."""

    ALL = "ALL"
    FRIEND = "FRIEND"
    WORK = "WORK"
    FAMILY = "FAMILY"


class NoteCategory(str, Enum):
    """Topic of a note."""

    MUSIC = "MUSIC"
    PERSONAL = "PERSONAL"
    GIFT = "GIFT"
    HOBBIES = "HOBBIES"
    NEWS = "NEWS"
    OTHERS = "OTHERS"
    WORK = "WORK"


class ContactBase(BaseModel):
    """Shared fields for contact schemas."""

    model_config = ConfigDict(populate_by_name=True)

    first_name: str = Field(alias="firstName")
    last_name: str = Field("", alias="lastName")
    category: ContactCategory = ContactCategory.ALL

    @field_validator("last_name", mode="before")
    @classmethod
    def _blank_last_name(cls, value):
        return "" if value is None else value

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, value):
        return ContactCategory.ALL if value is None else value


class ContactCreate(ContactBase):
    """Schema for creating a contact. A missing native id is generated on insert."""

    native_id: Optional[str] = Field(None, alias="nativeID")

    @classmethod
    def from_device_record(cls, record: Mapping[str, Any]) -> "ContactCreate":
        """
        Build a contact from a device address-book entry.

        Args:
            record (Mapping): Entry with ``id``, ``firstName`` and
                optionally ``lastName``.

        Raises:
            ValueError: If the entry has no id or no name at all.

        Returns:
            ContactCreate: Candidate for ``ContactStore.batch_save``.
        """
        native_id = record.get("id")
        if native_id is None or str(native_id).strip() == "":
            raise ValueError("Device record has no id")

        first_name = (record.get("firstName") or "").strip()
        last_name = (record.get("lastName") or "").strip()
        if not first_name:
            first_name, last_name = last_name, ""
        if not first_name:
            raise ValueError(f"Device record {native_id!r} has no name")

        return cls(
            native_id=str(native_id),
            first_name=first_name,
            last_name=last_name,
            category=ContactCategory.ALL,
        )


class ContactUpdate(BaseModel):
    """Schema for updating a contact (all fields optional)."""

    model_config = ConfigDict(populate_by_name=True)

    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    category: Optional[ContactCategory] = None
    native_id: Optional[str] = Field(None, alias="nativeID")


class ContactOut(ContactBase):
    """Stored contact."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: int
    native_id: str = Field(alias="nativeID")
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")


class ContactWithNoteCount(ContactOut):
    """Stored contact with the number of notes attached to it."""

    note_count: int = Field(0, alias="noteCount", ge=0)


class NoteBase(BaseModel):
    """Shared fields for note schemas."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(alias="userId")
    category: NoteCategory
    content: str


class NoteCreate(NoteBase):
    """Schema for creating a note about an existing contact."""

    pass


class NoteUpdate(BaseModel):
    """Schema for updating a note. The owning contact cannot change."""

    model_config = ConfigDict(populate_by_name=True)

    category: Optional[NoteCategory] = None
    content: Optional[str] = None


class NoteOut(NoteBase):
    """Stored note."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: int
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")
