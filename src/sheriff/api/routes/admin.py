"""
Storage administration API routes.

Provides endpoints for:
- Exporting the whole store as JSON
- Validating (dry run) and importing a snapshot
- Resetting to the seed state
- Saving to disk and reporting the data file status
"""

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, Body, Query
from fastapi.responses import JSONResponse

from sheriff.api.deps import Snapshots, StorageAdmin

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/export")
async def export_storage(actor: StorageAdmin, snapshots: Snapshots) -> JSONResponse:
    """Download the whole store."""
    return JSONResponse(
        content=snapshots.export_state(),
        headers={"Content-Disposition": 'attachment; filename="storage-export.json"'},
    )


@router.post("/import")
async def import_storage(
    actor: StorageAdmin,
    snapshots: Snapshots,
    candidate: Any = Body(...),
    dry_run: str = Query("0", alias="dryRun"),
) -> Any:
    """
    Validate and import a snapshot.

    With ``dryRun=1`` (or ``true``) only the validation result is returned.
    An invalid snapshot is rejected with 400 and the store is untouched.
    """
    result = snapshots.validate_state(candidate)
    if dry_run.lower() in ("1", "true"):
        return {"dryRun": True, **result.model_dump()}
    if not result.valid:
        logger.warning(f"Rejected snapshot import by {actor}: {len(result.errors)} errors")
        return JSONResponse(
            status_code=400,
            content={"message": "Validation failed", "errors": result.errors},
        )

    snapshots.import_state(candidate)
    logger.warning(f"Snapshot imported by {actor}")
    return {"success": True}


@router.post("/reset")
async def reset_storage(actor: StorageAdmin, snapshots: Snapshots) -> dict[str, bool]:
    snapshots.reset_to_seed()
    logger.warning(f"Store reset to seed by {actor}")
    return {"success": True}


@router.post("/save")
async def save_storage(actor: StorageAdmin, snapshots: Snapshots) -> dict[str, bool]:
    """Write the current state to the data file."""
    await asyncio.to_thread(snapshots.save_now)
    logger.warning(f"Snapshot saved by {actor}")
    return {"success": True}


@router.get("/status")
async def storage_status(actor: StorageAdmin, snapshots: Snapshots) -> dict[str, Any]:
    """Existence, size and modification time of the data file."""
    return snapshots.status()
