"""
Person summary API routes.
"""

from fastapi import APIRouter

from sheriff.api.deps import CurrentUser, Store
from sheriff.models import PersonSummary

router = APIRouter()


@router.get("")
async def list_persons(identity: CurrentUser, store: Store) -> list[PersonSummary]:
    """Per-person aggregate of all case files, most cases first."""
    return store.get_persons_summary()
