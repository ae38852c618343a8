"""
In-memory entity store.

Holds every domain record of the Sheriff's Office in process memory:
- Users, cases, jail records, fines, city laws
- Weapons, tasks, global and private notes
- The audit trail

All operations run under one re-entrant lock. Reads hand out copies, so
callers never observe or mutate shared state. Update operations return
``None`` for an unknown id and delete operations return ``False``; turning
that into a 404 is the caller's job.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Optional, TypeVar

from pydantic import ValidationError as PydanticValidationError

from sheriff.exceptions import ConflictError, ValidationError
from sheriff.models import (
    CITY_LAWS_ID,
    AuditLog,
    Case,
    CaseStatus,
    CityLaws,
    Fine,
    GlobalNote,
    JailRecord,
    PersonSummary,
    RecordModel,
    Task,
    TaskStatus,
    User,
    UserNote,
    Weapon,
    WeaponCategory,
    WEAPON_STATUSES,
    is_valid_status,
    new_id,
    truncate_to_millis,
    utcnow,
)
from sheriff.models.user import Rank

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=RecordModel)

# Smallest step the store clock advances; timestamps are kept at millisecond precision.
CLOCK_TICK = timedelta(milliseconds=1)


@dataclass
class StoreState:
    """All collections of the store. Dicts keep insertion order."""

    users: dict[str, User] = field(default_factory=dict)
    cases: dict[str, Case] = field(default_factory=dict)
    jail_records: dict[str, JailRecord] = field(default_factory=dict)
    fines: dict[str, Fine] = field(default_factory=dict)
    city_laws: Optional[CityLaws] = None
    weapons: dict[str, Weapon] = field(default_factory=dict)
    tasks: dict[str, Task] = field(default_factory=dict)
    global_notes: dict[str, GlobalNote] = field(default_factory=dict)
    user_notes: dict[str, UserNote] = field(default_factory=dict)
    audit_logs: dict[str, AuditLog] = field(default_factory=dict)


def _build(model: type[R], data: dict[str, Any]) -> R:
    """Construct a record, reporting shape errors as a ValidationError."""
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        errors = [
            f"{'.'.join(str(p) for p in err['loc']) or model.__name__}: {err['msg']}"
            for err in e.errors()
        ]
        raise ValidationError(errors=errors) from e


def _newest_first(records, key: str) -> list:
    return sorted(records, key=lambda r: getattr(r, key), reverse=True)


class EntityStore:
    """
    Thread-safe in-memory store for all Sheriff's Office records.

    Args:
        clock: Callable returning the current aware datetime. Injected in
            tests; defaults to UTC wall time.
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self._clock = clock
        self._lock = threading.RLock()
        self._state = StoreState()
        self._last_ts: Optional[datetime] = None

    @property
    def lock(self) -> threading.RLock:
        """The store-wide lock, for callers that need a consistent multi-read."""
        return self._lock

    def _now(self) -> datetime:
        # Strictly increasing so updatedAt always moves forward.
        now = truncate_to_millis(self._clock())
        if self._last_ts is not None and now <= self._last_ts:
            now = self._last_ts + CLOCK_TICK
        self._last_ts = now
        return now

    def _advance_clock_past(self, state: StoreState) -> None:
        latest = [
            ts
            for records in (state.cases, state.weapons, state.tasks, state.global_notes, state.user_notes)
            for r in records.values()
            for ts in (r.created_at, r.updated_at)
        ]
        latest += [log.timestamp for log in state.audit_logs.values()]
        if latest:
            top = max(latest)
            if self._last_ts is None or top > self._last_ts:
                self._last_ts = top

    # ------------------------------------------------------------------
    # Whole-state access (snapshot service)
    # ------------------------------------------------------------------

    def copy_state(self) -> StoreState:
        """Deep copy of every collection, taken atomically."""
        with self._lock:
            s = self._state
            return StoreState(
                users={k: v.model_copy(deep=True) for k, v in s.users.items()},
                cases={k: v.model_copy(deep=True) for k, v in s.cases.items()},
                jail_records={k: v.model_copy(deep=True) for k, v in s.jail_records.items()},
                fines={k: v.model_copy(deep=True) for k, v in s.fines.items()},
                city_laws=s.city_laws.model_copy(deep=True) if s.city_laws else None,
                weapons={k: v.model_copy(deep=True) for k, v in s.weapons.items()},
                tasks={k: v.model_copy(deep=True) for k, v in s.tasks.items()},
                global_notes={k: v.model_copy(deep=True) for k, v in s.global_notes.items()},
                user_notes={k: v.model_copy(deep=True) for k, v in s.user_notes.items()},
                audit_logs={k: v.model_copy(deep=True) for k, v in s.audit_logs.items()},
            )

    def replace_state(self, state: StoreState) -> None:
        """Swap in a fully built state in one step."""
        with self._lock:
            self._state = state
            self._advance_clock_past(state)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def list_users(self) -> list[User]:
        with self._lock:
            return [u.model_copy() for u in self._state.users.values()]

    def get_user(self, user_id: str) -> Optional[User]:
        with self._lock:
            user = self._state.users.get(user_id)
            return user.model_copy() if user else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._lock:
            for user in self._state.users.values():
                if user.username == username:
                    return user.model_copy()
            return None

    def create_user(
        self,
        username: str,
        password_hash: str,
        rank: Rank,
        must_change_password: int = 0,
    ) -> User:
        """
        Create a user account.

        Args:
            username: Unique login name
            password_hash: Already-hashed password
            rank: Personnel rank
            must_change_password: 1 to force a password change at next login

        Raises:
            ConflictError: If the username is taken
        """
        with self._lock:
            if self.get_user_by_username(username) is not None:
                raise ConflictError(f"Benutzername '{username}' existiert bereits")
            user = _build(
                User,
                {
                    "id": new_id(),
                    "username": username,
                    "password": password_hash,
                    "rank": rank,
                    "must_change_password": must_change_password,
                },
            )
            self._state.users[user.id] = user
            return user.model_copy()

    def update_user_password(
        self, user_id: str, password_hash: str, clear_must_change: bool = True
    ) -> Optional[User]:
        """Store a new password hash; by default also clears mustChangePassword."""
        with self._lock:
            user = self._state.users.get(user_id)
            if user is None:
                return None
            update: dict[str, Any] = {"password": password_hash}
            if clear_must_change:
                update["must_change_password"] = 0
            user = user.model_copy(update=update)
            self._state.users[user_id] = user
            return user.model_copy()

    # ------------------------------------------------------------------
    # Cases
    # ------------------------------------------------------------------

    def _check_case_number(self, case_number: str, exclude_id: Optional[str] = None) -> None:
        for case in self._state.cases.values():
            if case.case_number == case_number and case.id != exclude_id:
                raise ConflictError(f"Aktenzeichen '{case_number}' existiert bereits")

    def list_cases(self) -> list[Case]:
        """All cases, newest first."""
        with self._lock:
            return [c.model_copy() for c in _newest_first(self._state.cases.values(), "created_at")]

    def get_case(self, case_id: str) -> Optional[Case]:
        with self._lock:
            case = self._state.cases.get(case_id)
            return case.model_copy() if case else None

    def create_case(
        self,
        case_number: str,
        person_name: str,
        crime: str,
        handler: str,
        status: CaseStatus = CaseStatus.OPEN,
        notes: Optional[str] = None,
        photo: Optional[str] = None,
        characteristics: Optional[str] = None,
    ) -> Case:
        with self._lock:
            self._check_case_number(case_number)
            now = self._now()
            case = _build(
                Case,
                {
                    "id": new_id(),
                    "case_number": case_number,
                    "person_name": person_name,
                    "crime": crime,
                    "status": status,
                    "notes": notes,
                    "photo": photo,
                    "characteristics": characteristics,
                    "handler": handler,
                    "created_at": now,
                    "updated_at": now,
                },
            )
            self._state.cases[case.id] = case
            return case.model_copy()

    def update_case(self, case_id: str, **fields: Any) -> Optional[Case]:
        """
        Merge fields into a case and bump updatedAt.

        Identity and timestamps cannot be overwritten this way.
        """
        for protected in ("id", "created_at", "updated_at"):
            fields.pop(protected, None)
        with self._lock:
            case = self._state.cases.get(case_id)
            if case is None:
                return None
            if "case_number" in fields:
                self._check_case_number(fields["case_number"], exclude_id=case_id)
            data = case.model_dump()
            data.update(fields)
            data["updated_at"] = self._now()
            updated = _build(Case, data)
            self._state.cases[case_id] = updated
            return updated.model_copy()

    def update_case_status(self, case_id: str, status: CaseStatus) -> Optional[Case]:
        return self.update_case(case_id, status=status)

    def delete_case(self, case_id: str) -> bool:
        with self._lock:
            return self._state.cases.pop(case_id, None) is not None

    def get_persons_summary(self) -> list[PersonSummary]:
        """
        Aggregate cases per person name.

        Cases are visited newest first, so the first non-empty photo and
        characteristics seen are the most recent ones. The latest case is
        picked by strictly greater createdAt; ties keep the one seen first.
        Result is ordered by case count, highest first (stable).
        """
        persons: dict[str, dict[str, Any]] = {}
        for case in self.list_cases():
            entry = persons.get(case.person_name)
            if entry is None:
                entry = persons[case.person_name] = {
                    "name": case.person_name,
                    "photo": None,
                    "characteristics": None,
                    "cases": [],
                    "latest": None,
                }
            entry["cases"].append(case)
            if not entry["photo"] and case.photo:
                entry["photo"] = case.photo
            if not entry["characteristics"] and case.characteristics:
                entry["characteristics"] = case.characteristics
            latest = entry["latest"]
            if latest is None or case.created_at > latest.created_at:
                entry["latest"] = case

        summaries = [
            PersonSummary(
                name=entry["name"],
                photo=entry["photo"],
                characteristics=entry["characteristics"],
                case_count=len(entry["cases"]),
                last_crime=entry["latest"].crime,
                last_case_date=entry["latest"].created_at,
                cases=entry["cases"],
            )
            for entry in persons.values()
        ]
        summaries.sort(key=lambda p: p.case_count, reverse=True)
        return summaries

    # ------------------------------------------------------------------
    # Jail
    # ------------------------------------------------------------------

    def list_jail_records(self) -> list[JailRecord]:
        """All jail records, most recent start time first."""
        with self._lock:
            return [
                r.model_copy()
                for r in _newest_first(self._state.jail_records.values(), "start_time")
            ]

    def get_jail_record(self, record_id: str) -> Optional[JailRecord]:
        with self._lock:
            record = self._state.jail_records.get(record_id)
            return record.model_copy() if record else None

    def create_jail_record(
        self,
        person_name: str,
        crime: str,
        duration_minutes: int,
        handler: str,
        start_time: Optional[datetime] = None,
    ) -> JailRecord:
        with self._lock:
            record = _build(
                JailRecord,
                {
                    "id": new_id(),
                    "person_name": person_name,
                    "crime": crime,
                    "duration_minutes": duration_minutes,
                    "start_time": start_time or self._now(),
                    "handler": handler,
                    "released": 0,
                    "released_at": None,
                },
            )
            self._state.jail_records[record.id] = record
            return record.model_copy()

    def release_inmate(self, record_id: str) -> Optional[JailRecord]:
        """Mark an inmate released. Releasing again refreshes releasedAt."""
        with self._lock:
            record = self._state.jail_records.get(record_id)
            if record is None:
                return None
            record = record.model_copy(update={"released": 1, "released_at": self._now()})
            self._state.jail_records[record_id] = record
            return record.model_copy()

    def delete_jail_record(self, record_id: str) -> bool:
        with self._lock:
            return self._state.jail_records.pop(record_id, None) is not None

    # ------------------------------------------------------------------
    # Fines
    # ------------------------------------------------------------------

    def list_fines(self) -> list[Fine]:
        with self._lock:
            return [f.model_copy() for f in self._state.fines.values()]

    def get_fine(self, fine_id: str) -> Optional[Fine]:
        with self._lock:
            fine = self._state.fines.get(fine_id)
            return fine.model_copy() if fine else None

    def create_fine(self, violation: str, amount: int, remarks: Optional[str] = None) -> Fine:
        with self._lock:
            fine = _build(
                Fine,
                {"id": new_id(), "violation": violation, "amount": amount, "remarks": remarks},
            )
            self._state.fines[fine.id] = fine
            return fine.model_copy()

    def delete_fine(self, fine_id: str) -> bool:
        with self._lock:
            return self._state.fines.pop(fine_id, None) is not None

    # ------------------------------------------------------------------
    # City laws
    # ------------------------------------------------------------------

    def get_city_laws(self) -> Optional[CityLaws]:
        with self._lock:
            laws = self._state.city_laws
            return laws.model_copy() if laws else None

    def save_city_laws(self, content: str, updated_by: str) -> CityLaws:
        """Overwrite the city laws document."""
        with self._lock:
            laws = CityLaws(
                id=CITY_LAWS_ID,
                content=content,
                updated_at=self._now(),
                updated_by=updated_by,
            )
            self._state.city_laws = laws
            return laws.model_copy()

    # ------------------------------------------------------------------
    # Weapons
    # ------------------------------------------------------------------

    def _check_serial_number(self, serial_number: str) -> None:
        for weapon in self._state.weapons.values():
            if weapon.serial_number == serial_number:
                raise ConflictError(f"Seriennummer '{serial_number}' existiert bereits")

    @staticmethod
    def _check_weapon_status(category: WeaponCategory, status: str) -> None:
        if not is_valid_status(category, status):
            allowed = ", ".join(WEAPON_STATUSES[WeaponCategory(category)])
            raise ValidationError(
                errors=[f"status: '{status}' ist für {WeaponCategory(category).value} ungültig ({allowed})"]
            )

    def list_weapons(self) -> list[Weapon]:
        """All weapons, newest first."""
        with self._lock:
            return [
                w.model_copy() for w in _newest_first(self._state.weapons.values(), "created_at")
            ]

    def get_weapon(self, weapon_id: str) -> Optional[Weapon]:
        with self._lock:
            weapon = self._state.weapons.get(weapon_id)
            return weapon.model_copy() if weapon else None

    def create_weapon(
        self,
        serial_number: str,
        weapon_type: str,
        owner: str,
        category: WeaponCategory,
        created_by: str,
        status: Optional[str] = None,
    ) -> Weapon:
        """
        Register a weapon.

        Without an explicit status the first status of the category's
        vocabulary is used (``registriert`` / ``vergeben``).

        Raises:
            ConflictError: If the serial number is taken
            ValidationError: If the status does not fit the category
        """
        category = WeaponCategory(category)
        status = status or WEAPON_STATUSES[category][0]
        with self._lock:
            self._check_weapon_status(category, status)
            self._check_serial_number(serial_number)
            now = self._now()
            weapon = _build(
                Weapon,
                {
                    "id": new_id(),
                    "serial_number": serial_number,
                    "weapon_type": weapon_type,
                    "owner": owner,
                    "category": category,
                    "status": status,
                    "status_changed_at": now,
                    "created_at": now,
                    "created_by": created_by,
                    "updated_at": now,
                    "updated_by": created_by,
                },
            )
            self._state.weapons[weapon.id] = weapon
            return weapon.model_copy()

    def update_weapon_status(
        self, weapon_id: str, status: str, updated_by: str
    ) -> Optional[Weapon]:
        with self._lock:
            weapon = self._state.weapons.get(weapon_id)
            if weapon is None:
                return None
            self._check_weapon_status(weapon.category, status)
            now = self._now()
            weapon = weapon.model_copy(
                update={
                    "status": status,
                    "status_changed_at": now,
                    "updated_at": now,
                    "updated_by": updated_by,
                }
            )
            self._state.weapons[weapon_id] = weapon
            return weapon.model_copy()

    def delete_weapon(self, weapon_id: str) -> bool:
        with self._lock:
            return self._state.weapons.pop(weapon_id, None) is not None

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def list_tasks(self) -> list[Task]:
        """All tasks, newest first."""
        with self._lock:
            return [t.model_copy() for t in _newest_first(self._state.tasks.values(), "created_at")]

    def get_task(self, task_id: str) -> Optional[Task]:
        with self._lock:
            task = self._state.tasks.get(task_id)
            return task.model_copy() if task else None

    def create_task(
        self,
        title: str,
        assigned_to: str,
        assigned_by: str,
        description: Optional[str] = None,
        status: TaskStatus = TaskStatus.OPEN,
    ) -> Task:
        with self._lock:
            now = self._now()
            task = _build(
                Task,
                {
                    "id": new_id(),
                    "title": title,
                    "description": description,
                    "assigned_to": assigned_to,
                    "assigned_by": assigned_by,
                    "status": status,
                    "created_at": now,
                    "updated_at": now,
                },
            )
            self._state.tasks[task.id] = task
            return task.model_copy()

    def _update_task(self, task_id: str, update: dict[str, Any]) -> Optional[Task]:
        with self._lock:
            task = self._state.tasks.get(task_id)
            if task is None:
                return None
            task = task.model_copy(update={**update, "updated_at": self._now()})
            self._state.tasks[task_id] = task
            return task.model_copy()

    def update_task_status(self, task_id: str, status: TaskStatus) -> Optional[Task]:
        return self._update_task(task_id, {"status": TaskStatus(status)})

    def transfer_task(self, task_id: str, assigned_to: str) -> Optional[Task]:
        """Hand a task to another user. Only the assignee changes."""
        return self._update_task(task_id, {"assigned_to": assigned_to})

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    def list_global_notes(self) -> list[GlobalNote]:
        with self._lock:
            return [
                n.model_copy()
                for n in _newest_first(self._state.global_notes.values(), "created_at")
            ]

    def get_global_note(self, note_id: str) -> Optional[GlobalNote]:
        with self._lock:
            note = self._state.global_notes.get(note_id)
            return note.model_copy() if note else None

    def create_global_note(self, content: str, author: str) -> GlobalNote:
        with self._lock:
            now = self._now()
            note = GlobalNote(
                id=new_id(),
                content=content,
                author=author,
                created_at=now,
                updated_at=now,
                updated_by=author,
            )
            self._state.global_notes[note.id] = note
            return note.model_copy()

    def update_global_note(
        self, note_id: str, content: str, updated_by: str
    ) -> Optional[GlobalNote]:
        with self._lock:
            note = self._state.global_notes.get(note_id)
            if note is None:
                return None
            note = note.model_copy(
                update={"content": content, "updated_at": self._now(), "updated_by": updated_by}
            )
            self._state.global_notes[note_id] = note
            return note.model_copy()

    def delete_global_note(self, note_id: str) -> bool:
        with self._lock:
            return self._state.global_notes.pop(note_id, None) is not None

    def list_user_notes(self, user_id: str) -> list[UserNote]:
        """Private notes of one user, newest first."""
        with self._lock:
            notes = [n for n in self._state.user_notes.values() if n.user_id == user_id]
            return [n.model_copy() for n in _newest_first(notes, "created_at")]

    def get_user_note(self, note_id: str) -> Optional[UserNote]:
        with self._lock:
            note = self._state.user_notes.get(note_id)
            return note.model_copy() if note else None

    def create_user_note(self, user_id: str, content: str) -> UserNote:
        with self._lock:
            now = self._now()
            note = UserNote(
                id=new_id(), user_id=user_id, content=content, created_at=now, updated_at=now
            )
            self._state.user_notes[note.id] = note
            return note.model_copy()

    def update_user_note(self, note_id: str, content: str) -> Optional[UserNote]:
        with self._lock:
            note = self._state.user_notes.get(note_id)
            if note is None:
                return None
            note = note.model_copy(update={"content": content, "updated_at": self._now()})
            self._state.user_notes[note_id] = note
            return note.model_copy()

    def delete_user_note(self, note_id: str) -> bool:
        with self._lock:
            return self._state.user_notes.pop(note_id, None) is not None

    # ------------------------------------------------------------------
    # Audit trail
    # ------------------------------------------------------------------

    def append_audit_log(
        self,
        action: str,
        entity: str,
        entity_id: Optional[str],
        details: str,
        username: str,
    ) -> AuditLog:
        with self._lock:
            log = AuditLog(
                id=new_id(),
                action=action,
                entity=entity,
                entity_id=entity_id,
                details=details,
                username=username,
                timestamp=self._now(),
            )
            self._state.audit_logs[log.id] = log
            return log.model_copy()

    def list_audit_logs(self, limit: Optional[int] = None) -> list[AuditLog]:
        """Audit entries, newest first; optionally only the first `limit`."""
        with self._lock:
            logs = _newest_first(self._state.audit_logs.values(), "timestamp")
            if limit is not None:
                logs = logs[:limit]
            return [log.model_copy() for log in logs]
