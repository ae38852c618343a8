"""
City laws API routes.
"""

from fastapi import APIRouter
from pydantic import Field

from sheriff.api.deps import Audit, CanEditLaws, CurrentUser, Store
from sheriff.models import CITY_LAWS_ID, AuditEntity, CityLaws, utcnow
from sheriff.models.base import RecordModel

router = APIRouter()


class CityLawsUpdate(RecordModel):
    content: str = Field(..., max_length=1_000_000)


@router.get("")
async def get_city_laws(identity: CurrentUser, store: Store) -> CityLaws:
    """The city laws; an empty document if they were never saved."""
    laws = store.get_city_laws()
    if laws is None:
        return CityLaws(id=CITY_LAWS_ID, content="", updated_at=utcnow(), updated_by="")
    return laws


@router.post("")
async def save_city_laws(
    body: CityLawsUpdate,
    identity: CanEditLaws,
    store: Store,
    audit: Audit,
) -> CityLaws:
    """Overwrite the city laws. Requires EDIT_LAWS."""
    laws = store.save_city_laws(body.content, updated_by=identity.username)
    audit.record(
        "Gesetze aktualisiert",
        AuditEntity.LAW,
        CITY_LAWS_ID,
        "Stadtgesetze wurden aktualisiert",
        identity.username,
    )
    return laws
