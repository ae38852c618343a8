"""
Administrative snapshot service.

Export, validate, import, reset and persist the whole entity store as one
JSON document:

    {users, cases, jailRecords, fines, cityLaws, weapons,
     tasks, globalNotes, userNotes, auditLogs}

Imports are built off to the side and swapped into the store in one step.
"""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from sheriff.exceptions import ValidationError
from sheriff.models import (
    COLLECTIONS,
    SNAPSHOT_KEYS,
    CityLaws,
    Rank,
    StoreSnapshot,
    User,
    ValidationResult,
    format_timestamp,
    new_id,
)
from sheriff.storage.store import EntityStore, StoreState

logger = logging.getLogger(__name__)

# Snapshot key -> attribute on StoreState
STATE_ATTRS: dict[str, str] = {
    "users": "users",
    "cases": "cases",
    "jailRecords": "jail_records",
    "fines": "fines",
    "weapons": "weapons",
    "tasks": "tasks",
    "globalNotes": "global_notes",
    "userNotes": "user_notes",
    "auditLogs": "audit_logs",
}

# Snapshot key -> wire name of the field that must be unique in it
UNIQUE_FIELDS: dict[str, str] = {
    "users": "username",
    "cases": "caseNumber",
    "weapons": "serialNumber",
}


def _format_errors(prefix: str, exc: PydanticValidationError) -> list[str]:
    return [
        f"{prefix}.{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
        if err["loc"]
        else f"{prefix}: {err['msg']}"
        for err in exc.errors()
    ]


class SnapshotService:
    """
    Whole-state operations on an EntityStore.

    Args:
        store: The live entity store
        path: Snapshot file written by save_now and read by load_from_disk
        seed_file: Optional snapshot used by reset_to_seed
        seed_username: Username of the default account when no seed file exists
        seed_password_hash: Password hash of that account
    """

    def __init__(
        self,
        store: EntityStore,
        path: Path,
        seed_file: Optional[Path] = None,
        seed_username: str = "sheriff",
        seed_password_hash: str = "",
    ):
        self._store = store
        self.path = Path(path)
        self.seed_file = Path(seed_file) if seed_file else None
        self._seed_username = seed_username
        self._seed_password_hash = seed_password_hash

    # ------------------------------------------------------------------
    # Export / validate / import
    # ------------------------------------------------------------------

    def export_state(self) -> dict[str, Any]:
        """JSON-ready document of the whole store."""
        state = self._store.copy_state()
        snapshot = StoreSnapshot(
            users=list(state.users.values()),
            cases=list(state.cases.values()),
            jail_records=list(state.jail_records.values()),
            fines=list(state.fines.values()),
            city_laws=state.city_laws,
            weapons=list(state.weapons.values()),
            tasks=list(state.tasks.values()),
            global_notes=list(state.global_notes.values()),
            user_notes=list(state.user_notes.values()),
            audit_logs=list(state.audit_logs.values()),
        )
        return snapshot.to_json()

    def validate_state(self, candidate: Any) -> ValidationResult:
        """
        Check a snapshot candidate without touching the store.

        Every present key must hold a list of well-formed records (cityLaws:
        an object or null). Ids must be unique per collection; usernames,
        case numbers and serial numbers must be unique. Absent keys are
        allowed.
        """
        if not isinstance(candidate, dict):
            return ValidationResult(valid=False, errors=["Snapshot muss ein JSON-Objekt sein"])

        unknown = sorted(set(candidate) - set(SNAPSHOT_KEYS))
        if unknown:
            logger.info(f"Ignoring unknown snapshot keys: {unknown}")

        errors: list[str] = []

        laws = candidate.get("cityLaws")
        if laws is not None:
            if not isinstance(laws, dict):
                errors.append("cityLaws: muss ein Objekt oder null sein")
            else:
                try:
                    CityLaws.model_validate(laws)
                except PydanticValidationError as e:
                    errors.extend(_format_errors("cityLaws", e))

        for key, model in COLLECTIONS.items():
            if key not in candidate:
                continue
            items = candidate[key]
            if not isinstance(items, list):
                errors.append(f"{key}: muss eine Liste sein")
                continue

            seen_ids: set[str] = set()
            unique_field = UNIQUE_FIELDS.get(key)
            seen_values: set[Any] = set()
            for i, item in enumerate(items):
                prefix = f"{key}[{i}]"
                if not isinstance(item, dict):
                    errors.append(f"{prefix}: muss ein Objekt sein")
                    continue
                try:
                    model.model_validate(item)
                except PydanticValidationError as e:
                    errors.extend(_format_errors(prefix, e))
                    continue
                if item["id"] in seen_ids:
                    errors.append(f"{prefix}: doppelte id '{item['id']}'")
                seen_ids.add(item["id"])
                if unique_field is not None:
                    value = item.get(unique_field)
                    if value in seen_values:
                        errors.append(f"{prefix}: doppelter Wert für {unique_field} '{value}'")
                    seen_values.add(value)

        return ValidationResult(valid=not errors, errors=errors)

    def _build_state(self, candidate: dict[str, Any]) -> StoreState:
        state = StoreState()
        for key, model in COLLECTIONS.items():
            target = getattr(state, STATE_ATTRS[key])
            for item in candidate.get(key) or []:
                record = model.model_validate(item)
                target[record.id] = record
        laws = candidate.get("cityLaws")
        if laws is not None:
            state.city_laws = CityLaws.model_validate(laws)
        return state

    def import_state(self, candidate: Any) -> None:
        """
        Replace the whole store with the candidate.

        Raises:
            ValidationError: If the candidate does not validate; the store
                is left untouched
        """
        result = self.validate_state(candidate)
        if not result.valid:
            raise ValidationError("Validation failed", errors=result.errors)
        state = self._build_state(candidate)
        self._store.replace_state(state)
        logger.warning(
            f"Imported snapshot: {len(state.users)} users, {len(state.cases)} cases, "
            f"{len(state.audit_logs)} audit entries"
        )

    def reset_to_seed(self) -> None:
        """Replace the store with the seed snapshot, or a single Sheriff account."""
        if self.seed_file is not None and self.seed_file.exists():
            with open(self.seed_file, encoding="utf-8") as f:
                seed = json.load(f)
            self.import_state(seed)
            logger.warning(f"Store reset to seed file {self.seed_file}")
            return

        user = User(
            id=new_id(),
            username=self._seed_username,
            password=self._seed_password_hash,
            rank=Rank.SHERIFF,
            must_change_password=0,
        )
        self._store.replace_state(StoreState(users={user.id: user}))
        logger.warning(f"Store reset to default account '{self._seed_username}'")

    # ------------------------------------------------------------------
    # Disk persistence
    # ------------------------------------------------------------------

    def save_now(self) -> Path:
        """
        Write the current state to the snapshot file.

        The document is written to a temporary file in the same directory
        and renamed over the target, so readers never see a partial file.
        """
        document = self.export_state()
        payload = json.dumps(document, ensure_ascii=False, indent=2)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

        logger.info(f"Saved snapshot to {self.path} ({len(payload)} bytes)")
        return self.path

    def status(self) -> dict[str, Any]:
        """Existence, size and modification time of the snapshot file."""
        if not self.path.exists():
            return {"exists": False}
        stat = self.path.stat()
        return {
            "exists": True,
            "size": stat.st_size,
            "mtime": format_timestamp(datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)),
        }

    def load_from_disk(self) -> bool:
        """
        Import the snapshot file if it exists and validates.

        Returns:
            True if the store was replaced from disk
        """
        if not self.path.exists():
            logger.info(f"No snapshot at {self.path}")
            return False

        try:
            with open(self.path, encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Could not read snapshot {self.path}: {e}")
            return False

        result = self.validate_state(document)
        if not result.valid:
            logger.error(
                f"Snapshot {self.path} failed validation with {len(result.errors)} errors; "
                f"first: {result.errors[0]}"
            )
            return False

        self.import_state(document)
        logger.info(f"Loaded snapshot from {self.path}")
        return True
