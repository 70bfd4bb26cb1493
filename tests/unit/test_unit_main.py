# tests/unit/test_unit_main.py — v3
"""Tests for main.py — CLI parsing and commands."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from bestthumb.main import _build_parser, main


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CACHE_BACKEND", "local")


class TestParser:
    def test_migrate_args(self):
        args = _build_parser().parse_args(["migrate", "/data", "-c", "4"])
        assert args.directory == Path("/data")
        assert args.concurrency == 4

    def test_serve_args(self):
        args = _build_parser().parse_args(["serve", "--port", "8080"])
        assert args.port == 8080
        assert args.host is None

    def test_no_command(self, capsys):
        assert main([]) == 1


class TestKeyCommand:
    def test_prints_ladder_keys(self, capsys):
        assert main(["key", "aGb3AlQrN9E"]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "aG.maxresdefault.aGb3AlQrN9E.webp"
        assert lines[-1] == "aG.hqdefault.aGb3AlQrN9E.jpg"
        assert len(lines) == 6

    def test_rejects_invalid_id(self, capsys):
        assert main(["key", "nope"]) == 2
        assert "Invalid video id" in capsys.readouterr().err


class TestMigrateCommand:
    def test_not_a_directory(self, tmp_path):
        assert main(["migrate", str(tmp_path / "missing")]) == 1

    def test_migrates_into_local_store(self, tmp_path, monkeypatch, capsys):
        src = tmp_path / "legacy" / "sddefault" / "jpg"
        src.mkdir(parents=True)
        (src / "aGb3AlQrN9E.jpg").write_bytes(b"jpeg")
        monkeypatch.setenv("THUMBNAIL_DIR", str(tmp_path / "cache"))

        assert main(["migrate", str(tmp_path / "legacy")]) == 0

        assert (tmp_path / "cache" / "sddefault" / "jpg" / "aGb3AlQrN9E.jpg").read_bytes() == b"jpeg"
        assert "Migrated:     1" in capsys.readouterr().out

    def test_closes_key_index(self, tmp_path):
        src = tmp_path / "legacy" / "hqdefault" / "webp"
        src.mkdir(parents=True)
        (src / "aGb3AlQrN9E.webp").write_bytes(b"webp")
        index = MagicMock()
        index.set = AsyncMock()

        with patch("bestthumb.cache.cache_factory.create_key_index", return_value=index):
            assert main(["migrate", str(tmp_path / "legacy")]) == 0

        index.set.assert_awaited_once_with("aGb3AlQrN9E", "aG.hqdefault.aGb3AlQrN9E.webp")
        index.close.assert_called_once_with()


class TestServeCommand:
    def test_runs_uvicorn(self):
        with patch("uvicorn.run") as run:
            assert main(["serve", "--port", "8081"]) == 0
        assert run.call_args.kwargs["port"] == 8081
