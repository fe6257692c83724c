"""Tests for the zipmason command line."""

from __future__ import annotations

import json
import os
import zipfile
from pathlib import Path

import pytest

from zipmason.cli import EXIT_FATAL, EXIT_ITEM_ERRORS, EXIT_OK, main, parse_cli_args
from zipmason.core.logging import VerbosityLevel, get_verbosity


def _run(tmp_path: Path, *argv: str) -> int:
    return main(["--config", str(tmp_path / "config.yaml"), *argv])


class TestParseArgs:
    def test_create_flags(self) -> None:
        args = parse_cli_args(
            ["create", "out.zip", "a", "b", "--force", "-l", "fastest", "--no-clobber"]
        )

        assert args.command == "create"
        assert args.destination == "out.zip"
        assert args.paths == ("a", "b")
        assert args.force is True
        assert args.level == "fastest"
        assert args.no_clobber is True

    def test_force_defaults_to_none(self) -> None:
        args = parse_cli_args(["add", "out.zip", "a"])
        assert args.force is None
        assert args.level is None

    def test_global_flag_before_subcommand_survives(self) -> None:
        assert parse_cli_args(["-q", "list", "x.zip"]).verbosity == "quiet"
        assert parse_cli_args(["list", "x.zip", "-d"]).verbosity == "debug"
        assert parse_cli_args(["list", "x.zip"]).verbosity is None

    def test_unused_positionals_are_empty_strings(self) -> None:
        args = parse_cli_args(["list", "x.zip"])
        assert args.archive == ""
        assert args.destination == ""
        assert parse_cli_args(["test", "x.zip"]).archive == "x.zip"

    def test_unknown_level_is_rejected(self) -> None:
        with pytest.raises(SystemExit):
            parse_cli_args(["create", "out.zip", "a", "-l", "ultra"])

    def test_command_is_required(self) -> None:
        with pytest.raises(SystemExit):
            parse_cli_args([])


def test_create_prints_path_and_size(tmp_path: Path, source_tree: Path, capsys) -> None:
    archive = tmp_path / "out.zip"

    assert _run(tmp_path, "-q", "create", str(archive), str(source_tree)) == EXIT_OK

    out = capsys.readouterr().out.strip()
    assert out == f"{archive} {archive.stat().st_size}"


def test_verbosity_flag_is_applied(tmp_path: Path, source_tree: Path) -> None:
    _run(tmp_path, "-v", "create", str(tmp_path / "out.zip"), str(source_tree))

    assert get_verbosity() == VerbosityLevel.VERBOSE


def test_add_conflict_is_warning_only(tmp_path: Path, source_tree: Path, capsys) -> None:
    archive = tmp_path / "out.zip"
    _run(tmp_path, "create", str(archive), str(source_tree))
    capsys.readouterr()

    code = _run(tmp_path, "-q", "add", str(archive), str(source_tree / "a.txt"))

    captured = capsys.readouterr()
    assert code == EXIT_OK
    assert captured.out == ""
    assert "already exists" in captured.err


def test_add_with_force_prints_entries(tmp_path: Path, source_tree: Path, capsys) -> None:
    archive = tmp_path / "out.zip"
    _run(tmp_path, "create", str(archive), str(source_tree))
    capsys.readouterr()

    code = _run(tmp_path, "-q", "add", str(archive), str(source_tree / "a.txt"), "--force")

    assert code == EXIT_OK
    assert capsys.readouterr().out.split() == ["a.txt", "120"]


def test_list_json(tmp_path: Path, source_tree: Path, capsys) -> None:
    archive = tmp_path / "out.zip"
    _run(tmp_path, "create", str(archive), str(source_tree))
    capsys.readouterr()

    assert _run(tmp_path, "-q", "list", str(archive), "--json", "--include", "S/*") == EXIT_OK

    rows = json.loads(capsys.readouterr().out)
    assert [r["name"] for r in rows] == ["S/c.txt"]
    assert rows[0]["archive"] == str(archive)
    assert rows[0]["size"] == 320


def test_expand_prints_extracted_paths(tmp_path: Path, source_tree: Path, capsys) -> None:
    archive = tmp_path / "out.zip"
    _run(tmp_path, "create", str(archive), str(source_tree))
    capsys.readouterr()

    assert _run(tmp_path, "-q", "expand", str(archive), str(tmp_path / "E")) == EXIT_OK

    lines = capsys.readouterr().out.splitlines()
    assert sorted(Path(p).name for p in lines) == ["a.txt", "b.txt", "c.txt"]


def test_fatal_error_exit_code(tmp_path: Path, capsys) -> None:
    code = _run(tmp_path, "list", str(tmp_path / "missing.zip"))

    assert code == EXIT_FATAL
    assert "Archive not found" in capsys.readouterr().err


def test_item_errors_exit_code(tmp_path: Path, capsys) -> None:
    archive = tmp_path / "in.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("../escape.txt", b"x")
        zf.writestr("ok.txt", b"ok")

    code = _run(tmp_path, "-q", "expand", str(archive), str(tmp_path / "E"))

    assert code == EXIT_ITEM_ERRORS
    assert (tmp_path / "E" / "ok.txt").exists()
    assert not (tmp_path / "escape.txt").exists()


def test_test_command_lists_damaged_entries(tmp_path: Path, capsys) -> None:
    archive = tmp_path / "in.zip"
    with zipfile.ZipFile(archive, "w", compression=zipfile.ZIP_STORED) as zf:
        zf.writestr("bad.txt", b"q" * 64)
    raw = bytearray(archive.read_bytes())
    raw[raw.find(b"q" * 64)] = ord("r")
    archive.write_bytes(bytes(raw))

    assert _run(tmp_path, "-q", "test", str(archive)) == EXIT_ITEM_ERRORS
    assert capsys.readouterr().out.strip() == "bad.txt"


def test_invalid_config_is_fatal(tmp_path: Path, source_tree: Path, capsys) -> None:
    (tmp_path / "config.yaml").write_text("logging:\n  level: shouty\n")

    code = _run(tmp_path, "create", str(tmp_path / "out.zip"), str(source_tree))

    assert code == EXIT_FATAL
    assert "logging.level" in capsys.readouterr().err


def test_create_accepts_pre_1980_files(tmp_path: Path, capsys) -> None:
    src = tmp_path / "src"
    src.mkdir()
    (src / "old.txt").write_bytes(b"old")
    (src / "new.txt").write_bytes(b"new")
    os.utime(src / "old.txt", (0, 0))
    archive = tmp_path / "out.zip"

    assert _run(tmp_path, "-q", "create", str(archive), str(src)) == EXIT_OK
    with zipfile.ZipFile(archive) as zf:
        assert sorted(zf.namelist()) == ["new.txt", "old.txt"]
