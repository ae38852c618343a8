"""
Weapon registry API routes.
"""

from typing import Optional

from fastapi import APIRouter
from pydantic import Field

from sheriff.api.deps import Audit, CanDeleteRecords, CurrentUser, Store
from sheriff.exceptions import NotFoundError
from sheriff.models import AuditEntity, Weapon, WeaponCategory
from sheriff.models.base import RecordModel

router = APIRouter()

WEAPON_NOT_FOUND = "Waffe nicht gefunden"


class WeaponCreate(RecordModel):
    """Weapon registration. Status defaults to the category's initial status."""

    serial_number: str = Field(..., min_length=1, max_length=100)
    weapon_type: str = Field(..., min_length=1, max_length=200)
    owner: str = Field(..., min_length=1, max_length=200)
    category: WeaponCategory
    status: Optional[str] = None


class WeaponStatusUpdate(RecordModel):
    status: str = Field(..., min_length=1)


@router.get("")
async def list_weapons(identity: CurrentUser, store: Store) -> list[Weapon]:
    return store.list_weapons()


@router.post("")
async def create_weapon(
    body: WeaponCreate,
    identity: CurrentUser,
    store: Store,
    audit: Audit,
) -> Weapon:
    weapon = store.create_weapon(
        serial_number=body.serial_number,
        weapon_type=body.weapon_type,
        owner=body.owner,
        category=body.category,
        created_by=identity.username,
        status=body.status,
    )
    audit.record(
        "Waffe registriert",
        AuditEntity.WEAPON,
        weapon.id,
        f"Waffe {weapon.serial_number} ({weapon.weapon_type}) für {weapon.owner} wurde registriert",
        identity.username,
    )
    return weapon


@router.patch("/{weapon_id}/status")
async def update_weapon_status(
    weapon_id: str,
    body: WeaponStatusUpdate,
    identity: CurrentUser,
    store: Store,
    audit: Audit,
) -> Weapon:
    with store.lock:
        before = store.get_weapon(weapon_id)
        if before is None:
            raise NotFoundError(WEAPON_NOT_FOUND)
        weapon = store.update_weapon_status(weapon_id, body.status, updated_by=identity.username)

    audit.record(
        "Waffenstatus geändert",
        AuditEntity.WEAPON,
        weapon.id,
        f"Waffe {weapon.serial_number} Status: {before.status} → {weapon.status}",
        identity.username,
    )
    return weapon


@router.delete("/{weapon_id}")
async def delete_weapon(
    weapon_id: str,
    identity: CanDeleteRecords,
    store: Store,
    audit: Audit,
) -> dict[str, bool]:
    weapon = store.get_weapon(weapon_id)
    if weapon is None or not store.delete_weapon(weapon_id):
        raise NotFoundError(WEAPON_NOT_FOUND)

    audit.record(
        "Waffe gelöscht",
        AuditEntity.WEAPON,
        weapon_id,
        f"Waffe {weapon.serial_number} wurde gelöscht",
        identity.username,
    )
    return {"success": True}
