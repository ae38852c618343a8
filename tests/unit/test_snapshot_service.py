"""
Unit tests for snapshot export, validation, import and disk persistence.
"""

import json

import pytest

from sheriff.exceptions import ValidationError
from sheriff.models import SNAPSHOT_KEYS, Rank, WeaponCategory
from sheriff.storage import EntityStore, SnapshotService


@pytest.fixture
def store():
    return EntityStore()


@pytest.fixture
def snapshots(store, tmp_path):
    return SnapshotService(
        store, tmp_path / "data" / "storage.json", seed_password_hash="seed-hash"
    )


@pytest.fixture
def populated(store):
    store.create_user("sheriff", "hash", Rank.SHERIFF)
    store.create_case("C-1", "Jane Doe", "Theft", "sheriff")
    store.create_weapon("SN-1", "Revolver", "Jane", WeaponCategory.CIVILIAN, "sheriff")
    store.save_city_laws("§1", "sheriff")
    store.append_audit_log("Login", "user", None, "Anmeldung", "sheriff")
    return store


class TestExport:
    """Tests for export_state."""

    def test_empty_store(self, snapshots):
        """Should export every key with empty collections."""
        data = snapshots.export_state()
        assert set(data) == set(SNAPSHOT_KEYS)
        assert data["cityLaws"] is None
        assert data["cases"] == []

    def test_wire_names(self, snapshots, populated):
        """Should use camelCase field names."""
        data = snapshots.export_state()
        case = data["cases"][0]
        assert case["caseNumber"] == "C-1"
        assert "case_number" not in case
        assert data["weapons"][0]["serialNumber"] == "SN-1"


class TestValidate:
    """Tests for validate_state."""

    def test_accepts_own_export(self, snapshots, populated):
        """Should accept what it exported."""
        assert snapshots.validate_state(snapshots.export_state()).valid

    def test_absent_keys_allowed(self, snapshots):
        """Should accept a partial document."""
        assert snapshots.validate_state({"fines": []}).valid

    def test_rejects_non_object(self, snapshots):
        """Should reject a top-level list."""
        result = snapshots.validate_state([1, 2])
        assert not result.valid
        assert result.errors

    def test_rejects_non_list_collection(self, snapshots):
        """Should name the offending key."""
        result = snapshots.validate_state({"cases": {}})
        assert not result.valid
        assert result.errors[0].startswith("cases")

    def test_duplicate_ids_and_usernames(self, snapshots, populated):
        """Should report duplicate ids and duplicate usernames."""
        data = snapshots.export_state()
        user = data["users"][0]
        data["users"].append(dict(user))
        result = snapshots.validate_state(data)
        assert not result.valid
        assert any("id" in e for e in result.errors)
        assert any("username" in e for e in result.errors)

    def test_rejects_bad_weapon_status(self, snapshots, populated):
        """Should reject a status outside the category's vocabulary."""
        data = snapshots.export_state()
        data["weapons"][0]["status"] = "vergeben"
        assert not snapshots.validate_state(data).valid

    def test_never_mutates(self, snapshots, populated):
        """Should leave the store alone even for a valid candidate."""
        before = snapshots.export_state()
        snapshots.validate_state({"users": [], "cases": []})
        assert snapshots.export_state() == before


class TestImport:
    """Tests for import_state and reset_to_seed."""

    def test_invalid_import_is_atomic(self, snapshots, populated):
        """Should raise and keep the previous state."""
        before = snapshots.export_state()
        data = snapshots.export_state()
        data["cases"].append({"id": "broken"})
        with pytest.raises(ValidationError) as exc_info:
            snapshots.import_state(data)
        assert exc_info.value.errors
        assert snapshots.export_state() == before

    def test_roundtrip(self, snapshots, populated, store):
        """Should reproduce the exported document after a reset."""
        exported = snapshots.export_state()
        snapshots.reset_to_seed()
        snapshots.import_state(exported)
        assert snapshots.export_state() == exported

    def test_absent_keys_become_empty(self, snapshots, populated, store):
        """Should empty collections missing from the document."""
        snapshots.import_state({"fines": []})
        assert store.list_cases() == []
        assert store.get_city_laws() is None

    def test_timestamps_keep_increasing_after_import(self, snapshots, populated, store):
        """Should not hand out timestamps older than imported records."""
        exported = snapshots.export_state()
        snapshots.import_state(exported)
        case = store.list_cases()[0]
        updated = store.update_case(case.id, crime="Robbery")
        assert updated.updated_at > case.updated_at

    def test_reset_default_account(self, snapshots, store, populated):
        """Should leave only the Sheriff seed account."""
        snapshots.reset_to_seed()
        (user,) = store.list_users()
        assert user.username == "sheriff"
        assert user.rank == Rank.SHERIFF
        assert user.password == "seed-hash"
        assert user.must_change_password == 0
        assert store.list_audit_logs() == []

    def test_reset_from_seed_file(self, store, tmp_path, populated):
        """Should import the configured seed file."""
        source = SnapshotService(store, tmp_path / "a.json")
        seed_path = tmp_path / "seed.json"
        seed_path.write_text(json.dumps(source.export_state()), encoding="utf-8")

        fresh = EntityStore()
        service = SnapshotService(fresh, tmp_path / "b.json", seed_file=seed_path)
        service.reset_to_seed()
        assert [c.case_number for c in fresh.list_cases()] == ["C-1"]


class TestDiskPersistence:
    """Tests for save_now, status and load_from_disk."""

    def test_status_missing(self, snapshots):
        """Should report a missing file."""
        assert snapshots.status() == {"exists": False}

    def test_save_and_load(self, snapshots, populated, tmp_path):
        """Should write a file another store can load."""
        path = snapshots.save_now()
        assert path.exists()
        assert not list(path.parent.glob("*.tmp"))

        status = snapshots.status()
        assert status["exists"] is True
        assert status["size"] == path.stat().st_size

        other = EntityStore()
        assert SnapshotService(other, path).load_from_disk() is True
        assert [c.case_number for c in other.list_cases()] == ["C-1"]

    def test_load_missing(self, snapshots):
        """Should return False without a file."""
        assert snapshots.load_from_disk() is False

    def test_load_corrupt_keeps_state(self, snapshots, populated):
        """Should refuse unreadable or invalid files."""
        snapshots.path.parent.mkdir(parents=True, exist_ok=True)
        snapshots.path.write_text("{not json", encoding="utf-8")
        assert snapshots.load_from_disk() is False

        snapshots.path.write_text(json.dumps({"users": "x"}), encoding="utf-8")
        assert snapshots.load_from_disk() is False
        assert len(populated.list_cases()) == 1


class TestTimestampFormat:
    """Tests for the canonical timestamp form in snapshots."""

    @pytest.fixture
    def case_item(self):
        return {
            "id": "case-1",
            "caseNumber": "C-100",
            "personName": "Jane Doe",
            "crime": "Theft",
            "status": "offen",
            "notes": None,
            "photo": None,
            "characteristics": None,
            "handler": "sheriff",
            "createdAt": "2024-05-01T10:00:00.000Z",
            "updatedAt": "2024-05-01T10:15:30.250Z",
        }

    def test_millisecond_z_roundtrip(self, snapshots, case_item):
        """Should export an imported millisecond timestamp unchanged."""
        snapshots.import_state({"cases": [case_item]})
        assert snapshots.export_state()["cases"] == [case_item]

    @pytest.mark.parametrize(
        "written,expected",
        [
            ("2024-05-01T10:00:00+00:00", "2024-05-01T10:00:00.000Z"),
            ("2024-05-01T12:00:00.123456+02:00", "2024-05-01T10:00:00.123Z"),
            ("2024-05-01T10:00:00", "2024-05-01T10:00:00.000Z"),
        ],
    )
    def test_other_forms_normalized(self, snapshots, case_item, written, expected):
        """Should write offsets and naive values as UTC with milliseconds."""
        case_item["createdAt"] = written
        snapshots.import_state({"cases": [case_item]})
        assert snapshots.export_state()["cases"][0]["createdAt"] == expected

    def test_clock_moves_past_imported_timestamps(self, snapshots, store, case_item):
        """Should stamp later mutations after the newest imported timestamp."""
        case_item["updatedAt"] = "2999-01-01T00:00:00.000Z"
        snapshots.import_state({"cases": [case_item]})
        updated = store.update_case("case-1", crime="Robbery")
        assert updated.to_json()["updatedAt"] == "2999-01-01T00:00:00.001Z"
