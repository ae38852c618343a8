"""
Unit tests for background jobs and the maintenance scripts.
"""

import asyncio
import json

import pytest

from sheriff.config import Settings
from sheriff.jobs import PeriodicJob
from sheriff.scripts import export_state, import_state, open_snapshot_service


@pytest.fixture
def cfg(tmp_path):
    return Settings(
        environment="testing",
        data_dir=tmp_path / "data",
        seed_admin_password="script-test-pw",
    )


class TestPeriodicJob:
    """Tests for PeriodicJob."""

    @pytest.mark.asyncio
    async def test_runs_repeatedly_and_stops(self):
        """Should call the function on every tick until stopped."""
        calls = []
        job = PeriodicJob("tick", 0.01, lambda: calls.append(1))
        job.start()
        assert job.running
        await asyncio.sleep(0.1)
        await job.stop()

        assert not job.running
        assert len(calls) >= 2

    @pytest.mark.asyncio
    async def test_survives_failures(self, caplog):
        """Should log a failing run and keep going."""
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("first run fails")

        job = PeriodicJob("flaky", 0.01, flaky)
        job.start()
        await asyncio.sleep(0.1)
        await job.stop()

        assert len(calls) >= 2
        assert "Background job 'flaky' failed" in caplog.text

    @pytest.mark.asyncio
    async def test_run_once_returns_result(self):
        """Should return the function's result."""
        job = PeriodicJob("once", 60, lambda: 42)
        assert await job.run_once() == 42

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        """Should be a no-op when never started."""
        await PeriodicJob("idle", 60, lambda: None).stop()


class TestExportScript:
    """Tests for the export_state script."""

    def test_exports_seed_without_data_file(self, cfg, tmp_path, capsys):
        """Should fall back to the seed state."""
        out = tmp_path / "out.json"
        assert export_state.main([str(out)], cfg=cfg) == 0
        data = json.loads(out.read_text(encoding="utf-8"))
        assert [u["username"] for u in data["users"]] == ["sheriff"]
        assert "Exported to" in capsys.readouterr().out

    def test_default_output_path(self, cfg):
        """Should write into the data directory by default."""
        assert export_state.main([], cfg=cfg) == 0
        assert (cfg.data_dir / "storage-export.json").exists()


class TestImportScript:
    """Tests for the import_state script."""

    @pytest.fixture
    def snapshot_file(self, cfg, tmp_path):
        snapshots = open_snapshot_service(cfg)
        snapshots.reset_to_seed()
        path = tmp_path / "in.json"
        path.write_text(json.dumps(snapshots.export_state()), encoding="utf-8")
        return path

    def test_import_writes_data_file(self, cfg, snapshot_file):
        """Should validate, import and save."""
        assert import_state.main([str(snapshot_file)], cfg=cfg) == 0
        assert cfg.snapshot_path.exists()

    def test_dry_run_writes_nothing(self, cfg, snapshot_file, capsys):
        """Should only validate with --dry-run."""
        assert import_state.main([str(snapshot_file), "--dry-run"], cfg=cfg) == 0
        assert not cfg.snapshot_path.exists()
        assert "is valid" in capsys.readouterr().out

    def test_invalid_file_fails(self, cfg, tmp_path, capsys):
        """Should report errors and exit non-zero."""
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"users": [{"id": "x"}]}), encoding="utf-8")
        assert import_state.main([str(bad)], cfg=cfg) == 1
        assert "Validation failed" in capsys.readouterr().err
        assert not cfg.snapshot_path.exists()

    def test_missing_and_malformed_files(self, cfg, tmp_path):
        """Should fail cleanly on missing or non-JSON input."""
        assert import_state.main([str(tmp_path / "nope.json")], cfg=cfg) == 1
        broken = tmp_path / "broken.json"
        broken.write_text("{", encoding="utf-8")
        assert import_state.main([str(broken)], cfg=cfg) == 1
