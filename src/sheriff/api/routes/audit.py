"""
Audit trail API routes (read-only).
"""

from fastapi import APIRouter, Query

from sheriff.api.deps import Audit, CurrentUser
from sheriff.models import AuditLog

router = APIRouter()


@router.get("")
async def list_audit_logs(identity: CurrentUser, audit: Audit) -> list[AuditLog]:
    """Full audit trail, newest first."""
    return audit.list_all()


@router.get("/recent")
async def list_recent_audit_logs(
    identity: CurrentUser,
    audit: Audit,
    limit: int = Query(10, ge=1, le=500),
) -> list[AuditLog]:
    return audit.list_recent(limit)
