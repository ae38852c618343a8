"""
Case file API routes.

Provides endpoints for:
- Listing, reading and creating case files
- Editing case fields and changing status
- Deleting case files (requires DELETE_RECORDS)
"""

from typing import Optional

from fastapi import APIRouter
from pydantic import Field

from sheriff.api.deps import Audit, CanDeleteRecords, CurrentUser, Store
from sheriff.exceptions import NotFoundError, ValidationError
from sheriff.models import AuditEntity, Case, CaseStatus
from sheriff.models.base import RecordModel

router = APIRouter()

CASE_NOT_FOUND = "Fallakte nicht gefunden"


class CaseCreate(RecordModel):
    """Case creation request. The handler defaults to the caller."""

    case_number: str = Field(..., min_length=1, max_length=100)
    person_name: str = Field(..., min_length=1, max_length=200)
    crime: str = Field(..., max_length=500)
    status: CaseStatus = CaseStatus.OPEN
    notes: Optional[str] = None
    photo: Optional[str] = None
    characteristics: Optional[str] = None
    handler: Optional[str] = None


class CaseUpdate(RecordModel):
    """Partial case update; only fields sent are changed."""

    case_number: Optional[str] = Field(None, min_length=1, max_length=100)
    person_name: Optional[str] = Field(None, min_length=1, max_length=200)
    crime: Optional[str] = Field(None, max_length=500)
    status: Optional[CaseStatus] = None
    notes: Optional[str] = None
    photo: Optional[str] = None
    characteristics: Optional[str] = None
    handler: Optional[str] = None


class StatusUpdate(RecordModel):
    status: CaseStatus


@router.get("")
async def list_cases(identity: CurrentUser, store: Store) -> list[Case]:
    """All case files, newest first."""
    return store.list_cases()


@router.post("")
async def create_case(
    body: CaseCreate,
    identity: CurrentUser,
    store: Store,
    audit: Audit,
) -> Case:
    case = store.create_case(
        case_number=body.case_number,
        person_name=body.person_name,
        crime=body.crime,
        handler=body.handler or identity.username,
        status=body.status,
        notes=body.notes,
        photo=body.photo,
        characteristics=body.characteristics,
    )
    audit.record(
        "Fallakte erstellt",
        AuditEntity.CASE,
        case.id,
        f"Fallakte {case.case_number} für {case.person_name} wurde angelegt",
        identity.username,
    )
    return case


@router.get("/{case_id}")
async def get_case(case_id: str, identity: CurrentUser, store: Store) -> Case:
    case = store.get_case(case_id)
    if case is None:
        raise NotFoundError(CASE_NOT_FOUND)
    return case


@router.patch("/{case_id}")
async def update_case(
    case_id: str,
    body: CaseUpdate,
    identity: CurrentUser,
    store: Store,
    audit: Audit,
) -> Case:
    """Edit case fields."""
    fields = body.model_dump(exclude_unset=True)
    for required in ("case_number", "person_name", "crime", "status", "handler"):
        if required in fields and fields[required] is None:
            raise ValidationError(errors=[f"{required}: darf nicht leer sein"])

    case = store.update_case(case_id, **fields)
    if case is None:
        raise NotFoundError(CASE_NOT_FOUND)

    audit.record(
        "Fallakte bearbeitet",
        AuditEntity.CASE,
        case.id,
        f"Fallakte {case.case_number} wurde aktualisiert",
        identity.username,
    )
    return case


@router.patch("/{case_id}/status")
async def update_case_status(
    case_id: str,
    body: StatusUpdate,
    identity: CurrentUser,
    store: Store,
    audit: Audit,
) -> Case:
    with store.lock:
        before = store.get_case(case_id)
        if before is None:
            raise NotFoundError(CASE_NOT_FOUND)
        case = store.update_case_status(case_id, body.status)

    audit.record(
        "Status geändert",
        AuditEntity.CASE,
        case.id,
        f"Fallakte {case.case_number} Status: {before.status.value} → {case.status.value}",
        identity.username,
    )
    return case


@router.delete("/{case_id}")
async def delete_case(
    case_id: str,
    identity: CanDeleteRecords,
    store: Store,
    audit: Audit,
) -> dict[str, bool]:
    """Delete a case file. Requires DELETE_RECORDS."""
    case = store.get_case(case_id)
    if case is None or not store.delete_case(case_id):
        raise NotFoundError(CASE_NOT_FOUND)

    audit.record(
        "Fallakte gelöscht",
        AuditEntity.CASE,
        case_id,
        f"Fallakte {case.case_number} wurde gelöscht",
        identity.username,
    )
    return {"success": True}
