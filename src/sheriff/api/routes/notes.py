"""
Notes API routes.

Global notes are shared by everyone. User notes are private: every
operation is scoped to the caller's user id, and a note owned by someone
else is reported as not found.
"""

from fastapi import APIRouter
from pydantic import Field

from sheriff.api.deps import Audit, CurrentUser, Store
from sheriff.exceptions import NotFoundError
from sheriff.models import AuditEntity, GlobalNote, UserNote
from sheriff.models.base import RecordModel
from sheriff.storage import EntityStore

router = APIRouter()

NOTE_NOT_FOUND = "Notiz nicht gefunden"


class NoteContent(RecordModel):
    content: str = Field(..., max_length=100_000)


# Global notes
@router.get("/global")
async def list_global_notes(identity: CurrentUser, store: Store) -> list[GlobalNote]:
    return store.list_global_notes()


@router.post("/global")
async def create_global_note(
    body: NoteContent,
    identity: CurrentUser,
    store: Store,
    audit: Audit,
) -> GlobalNote:
    note = store.create_global_note(body.content, author=identity.username)
    audit.record(
        "Notiz erstellt",
        AuditEntity.NOTE,
        note.id,
        "Gemeinsame Notiz wurde erstellt",
        identity.username,
    )
    return note


@router.get("/global/{note_id}")
async def get_global_note(note_id: str, identity: CurrentUser, store: Store) -> GlobalNote:
    note = store.get_global_note(note_id)
    if note is None:
        raise NotFoundError(NOTE_NOT_FOUND)
    return note


@router.patch("/global/{note_id}")
async def update_global_note(
    note_id: str,
    body: NoteContent,
    identity: CurrentUser,
    store: Store,
    audit: Audit,
) -> GlobalNote:
    note = store.update_global_note(note_id, body.content, updated_by=identity.username)
    if note is None:
        raise NotFoundError(NOTE_NOT_FOUND)
    audit.record(
        "Notiz bearbeitet",
        AuditEntity.NOTE,
        note.id,
        "Gemeinsame Notiz wurde bearbeitet",
        identity.username,
    )
    return note


@router.delete("/global/{note_id}")
async def delete_global_note(
    note_id: str,
    identity: CurrentUser,
    store: Store,
    audit: Audit,
) -> dict[str, bool]:
    if not store.delete_global_note(note_id):
        raise NotFoundError(NOTE_NOT_FOUND)
    audit.record(
        "Notiz gelöscht",
        AuditEntity.NOTE,
        note_id,
        "Gemeinsame Notiz wurde gelöscht",
        identity.username,
    )
    return {"success": True}


# Private notes
def _own_note(store: EntityStore, note_id: str, user_id: str) -> UserNote:
    note = store.get_user_note(note_id)
    if note is None or note.user_id != user_id:
        raise NotFoundError(NOTE_NOT_FOUND)
    return note


@router.get("/user")
async def list_user_notes(identity: CurrentUser, store: Store) -> list[UserNote]:
    """The caller's private notes, newest first."""
    return store.list_user_notes(identity.user_id)


@router.post("/user")
async def create_user_note(
    body: NoteContent,
    identity: CurrentUser,
    store: Store,
    audit: Audit,
) -> UserNote:
    note = store.create_user_note(identity.user_id, body.content)
    audit.record(
        "Private Notiz erstellt",
        AuditEntity.NOTE,
        note.id,
        "Private Notiz wurde erstellt",
        identity.username,
    )
    return note


@router.patch("/user/{note_id}")
async def update_user_note(
    note_id: str,
    body: NoteContent,
    identity: CurrentUser,
    store: Store,
    audit: Audit,
) -> UserNote:
    with store.lock:
        _own_note(store, note_id, identity.user_id)
        note = store.update_user_note(note_id, body.content)
    audit.record(
        "Private Notiz bearbeitet",
        AuditEntity.NOTE,
        note.id,
        "Private Notiz wurde bearbeitet",
        identity.username,
    )
    return note


@router.delete("/user/{note_id}")
async def delete_user_note(
    note_id: str,
    identity: CurrentUser,
    store: Store,
    audit: Audit,
) -> dict[str, bool]:
    with store.lock:
        _own_note(store, note_id, identity.user_id)
        store.delete_user_note(note_id)
    audit.record(
        "Private Notiz gelöscht",
        AuditEntity.NOTE,
        note_id,
        "Private Notiz wurde gelöscht",
        identity.username,
    )
    return {"success": True}
