"""
Jail API routes.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter
from pydantic import Field

from sheriff.api.deps import Audit, CanDeleteRecords, CurrentUser, Store
from sheriff.exceptions import NotFoundError
from sheriff.models import AuditEntity, JailRecord
from sheriff.models.base import RecordModel

router = APIRouter()

RECORD_NOT_FOUND = "Eintrag nicht gefunden"


class JailRecordCreate(RecordModel):
    """Incarceration request. Start time defaults to now, handler to the caller."""

    person_name: str = Field(..., min_length=1, max_length=200)
    crime: str = Field(..., max_length=500)
    duration_minutes: int = Field(..., ge=0)
    start_time: Optional[datetime] = None
    handler: Optional[str] = None


@router.get("")
async def list_jail_records(identity: CurrentUser, store: Store) -> list[JailRecord]:
    return store.list_jail_records()


@router.post("")
async def create_jail_record(
    body: JailRecordCreate,
    identity: CurrentUser,
    store: Store,
    audit: Audit,
) -> JailRecord:
    record = store.create_jail_record(
        person_name=body.person_name,
        crime=body.crime,
        duration_minutes=body.duration_minutes,
        handler=body.handler or identity.username,
        start_time=body.start_time,
    )
    audit.record(
        "Inhaftierung",
        AuditEntity.JAIL,
        record.id,
        f"{record.person_name} wurde inhaftiert ({record.duration_minutes} Min., {record.crime})",
        identity.username,
    )
    return record


@router.patch("/{record_id}/release")
async def release_inmate(
    record_id: str,
    identity: CurrentUser,
    store: Store,
    audit: Audit,
) -> JailRecord:
    """Release an inmate. Releasing twice only refreshes releasedAt."""
    record = store.release_inmate(record_id)
    if record is None:
        raise NotFoundError(RECORD_NOT_FOUND)

    audit.record(
        "Entlassung",
        AuditEntity.JAIL,
        record.id,
        f"{record.person_name} wurde entlassen",
        identity.username,
    )
    return record


@router.delete("/{record_id}")
async def delete_jail_record(
    record_id: str,
    identity: CanDeleteRecords,
    store: Store,
    audit: Audit,
) -> dict[str, bool]:
    record = store.get_jail_record(record_id)
    if record is None or not store.delete_jail_record(record_id):
        raise NotFoundError(RECORD_NOT_FOUND)

    audit.record(
        "Eintrag gelöscht",
        AuditEntity.JAIL,
        record_id,
        f"Inhaftierung von {record.person_name} wurde gelöscht",
        identity.username,
    )
    return {"success": True}
