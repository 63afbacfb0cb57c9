import pytest

from oruma.errors import ConstraintViolation
from oruma.schemas import NoteCategory, NoteCreate, NoteUpdate

from conftest import contact_data


@pytest.mark.asyncio
async def test_create_note(notes, contacts):
    owner = await contacts.create(contact_data(native_id="n1"))

    note = await notes.create(
        NoteCreate(userId=owner.id, category="MUSIC", content="Likes jazz")
    )

    assert note.id > 0
    assert note.user_id == owner.id
    assert note.category == NoteCategory.MUSIC
    assert note.created_at == note.updated_at
    assert await notes.get_by_id(note.id) == note


@pytest.mark.asyncio
async def test_create_note_for_unknown_contact_fails(notes):
    with pytest.raises(ConstraintViolation):
        await notes.create(
            NoteCreate(user_id=404, category=NoteCategory.NEWS, content="orphan")
        )

    assert await notes.get_all() == []


@pytest.mark.asyncio
async def test_get_by_id_missing(notes):
    assert await notes.get_by_id(1) is None


@pytest.mark.asyncio
async def test_notes_listed_most_recent_first(notes, contacts):
    owner = await contacts.create(contact_data(native_id="n1"))
    other = await contacts.create(contact_data("Bob", native_id="n2"))
    created = [
        await notes.create(
            NoteCreate(user_id=owner.id, category=NoteCategory.PERSONAL, content=text)
        )
        for text in ("one", "two", "three")
    ]
    await notes.create(NoteCreate(user_id=other.id, category=NoteCategory.WORK, content="x"))

    listed = await notes.get_by_user_id(owner.id)

    assert [n.content for n in listed] == ["three", "two", "one"]
    assert len(await notes.get_all()) == 4
    assert [n.id for n in await notes.get_all()][:3] == [n.id for n in created]


@pytest.mark.asyncio
async def test_update_content_keeps_category(notes, contacts):
    owner = await contacts.create(contact_data(native_id="n1"))
    note = await notes.create(
        NoteCreate(user_id=owner.id, category=NoteCategory.WORK, content="old text")
    )

    assert await notes.update(note.id, NoteUpdate(content="new text")) is True

    updated = await notes.get_by_id(note.id)
    assert updated.content == "new text"
    assert updated.category == NoteCategory.WORK
    assert updated.user_id == owner.id
    assert updated.created_at == note.created_at
    assert updated.updated_at >= note.updated_at


@pytest.mark.asyncio
async def test_update_category_keeps_content(notes, contacts):
    owner = await contacts.create(contact_data(native_id="n1"))
    note = await notes.create(
        NoteCreate(user_id=owner.id, category=NoteCategory.GIFT, content="scarf")
    )

    await notes.update(note.id, NoteUpdate(category=NoteCategory.HOBBIES))

    updated = await notes.get_by_id(note.id)
    assert (updated.category, updated.content) == (NoteCategory.HOBBIES, "scarf")


@pytest.mark.asyncio
async def test_update_missing_note_returns_false(notes):
    assert await notes.update(77, NoteUpdate(content="nothing")) is False


@pytest.mark.asyncio
async def test_delete_note(notes, contacts):
    owner = await contacts.create(contact_data(native_id="n1"))
    note = await notes.create(
        NoteCreate(user_id=owner.id, category=NoteCategory.OTHERS, content="bye")
    )

    assert await notes.delete(note.id) is True
    assert await notes.delete(note.id) is False
    assert await notes.get_by_user_id(owner.id) == []
    assert await contacts.get_by_id(owner.id) is not None
