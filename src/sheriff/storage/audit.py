"""
Audit recorder.

Writes one entry per successful state change. Recording happens after the
primary mutation has been committed; if it fails, the failure is logged
and the primary operation still succeeds.
"""

import logging
from typing import Optional, Union

from sheriff.models import AuditEntity, AuditLog
from sheriff.storage.store import EntityStore

logger = logging.getLogger(__name__)


class AuditRecorder:
    """Append-only audit trail on top of the entity store."""

    def __init__(self, store: EntityStore):
        self._store = store

    def record(
        self,
        action: str,
        entity: Union[AuditEntity, str],
        entity_id: Optional[str],
        details: str,
        username: str,
    ) -> Optional[AuditLog]:
        """
        Append an audit entry.

        Args:
            action: Short German label, e.g. "Fallakte erstellt"
            entity: Entity tag (user, case, jail, ...)
            entity_id: Id of the affected record, if any
            details: Human-readable description
            username: Acting user

        Returns:
            The stored entry, or None if recording failed
        """
        tag = entity.value if isinstance(entity, AuditEntity) else entity
        try:
            return self._store.append_audit_log(action, tag, entity_id, details, username)
        except Exception:
            logger.exception(f"Failed to record audit entry '{action}' for {tag}:{entity_id}")
            return None

    def list_all(self) -> list[AuditLog]:
        """All entries, newest first."""
        return self._store.list_audit_logs()

    def list_recent(self, limit: int = 10) -> list[AuditLog]:
        """The `limit` newest entries."""
        return self._store.list_audit_logs(limit=limit)
