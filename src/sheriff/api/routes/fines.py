"""
Fine catalogue API routes.
"""

from typing import Optional

from fastapi import APIRouter
from pydantic import Field

from sheriff.api.deps import Audit, CanDeleteRecords, CurrentUser, Store
from sheriff.exceptions import NotFoundError
from sheriff.models import AuditEntity, Fine
from sheriff.models.base import RecordModel

router = APIRouter()


class FineCreate(RecordModel):
    violation: str = Field(..., min_length=1, max_length=500)
    amount: int = Field(..., ge=0)
    remarks: Optional[str] = None


@router.get("")
async def list_fines(identity: CurrentUser, store: Store) -> list[Fine]:
    """Fine catalogue in creation order."""
    return store.list_fines()


@router.post("")
async def create_fine(
    body: FineCreate,
    identity: CurrentUser,
    store: Store,
    audit: Audit,
) -> Fine:
    fine = store.create_fine(violation=body.violation, amount=body.amount, remarks=body.remarks)
    audit.record(
        "Bußgeld erstellt",
        AuditEntity.FINE,
        fine.id,
        f'Bußgeld "{fine.violation}" (${fine.amount}) wurde angelegt',
        identity.username,
    )
    return fine


@router.delete("/{fine_id}")
async def delete_fine(
    fine_id: str,
    identity: CanDeleteRecords,
    store: Store,
    audit: Audit,
) -> dict[str, bool]:
    fine = store.get_fine(fine_id)
    if fine is None or not store.delete_fine(fine_id):
        raise NotFoundError("Bußgeld nicht gefunden")

    audit.record(
        "Bußgeld gelöscht",
        AuditEntity.FINE,
        fine_id,
        f'Bußgeld "{fine.violation}" wurde gelöscht',
        identity.username,
    )
    return {"success": True}
