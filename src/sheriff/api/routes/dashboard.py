"""
Dashboard API routes.

Provides aggregated counters for the dashboard view.
"""

from fastapi import APIRouter

from sheriff.api.deps import CurrentUser, Store
from sheriff.models import CaseStatus
from sheriff.models.base import RecordModel

router = APIRouter()


class DashboardStats(RecordModel):
    """Dashboard counters."""

    active_cases: int = 0
    current_inmates: int = 0
    registered_weapons: int = 0


@router.get("/stats")
async def get_dashboard_stats(identity: CurrentUser, store: Store) -> DashboardStats:
    """Counts computed fresh from the store on every request."""
    with store.lock:
        cases = store.list_cases()
        jail_records = store.list_jail_records()
        weapons = store.list_weapons()

    return DashboardStats(
        active_cases=sum(1 for c in cases if c.status != CaseStatus.CLOSED),
        current_inmates=sum(1 for r in jail_records if r.released == 0),
        registered_weapons=len(weapons),
    )
