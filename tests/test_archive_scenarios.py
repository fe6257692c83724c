"""End-to-end archive scenarios through ArchiveService."""

from __future__ import annotations

import zipfile
from pathlib import Path

from zipmason.file_io.archives import ArchiveService


def _entries(path: Path) -> dict[str, bytes]:
    with zipfile.ZipFile(path) as zf:
        return {name: zf.read(name) for name in zf.namelist()}


def test_directory_tree_yields_one_entry_per_file(
    archive_service: ArchiveService, source_tree: Path, tmp_path: Path
) -> None:
    archive = tmp_path / "out.zip"
    archive_service.create_archive([str(source_tree)], str(archive))

    assert sorted(_entries(archive)) == ["S/c.txt", "a.txt", "b.txt"]


def test_extract_into_empty_directory(
    archive_service: ArchiveService, source_tree: Path, tmp_path: Path
) -> None:
    archive = tmp_path / "out.zip"
    archive_service.create_archive([str(source_tree)], str(archive))
    target = tmp_path / "E"
    target.mkdir()

    report = archive_service.expand_archive(str(archive), str(target))

    assert report.issues == []
    assert (target / "S").is_dir()
    for rel in ("a.txt", "b.txt", "S/c.txt"):
        assert (target / rel).read_bytes() == (source_tree / rel).read_bytes()


def test_round_trip_is_byte_identical(
    archive_service: ArchiveService, tmp_path: Path
) -> None:
    src = tmp_path / "src"
    (src / "deep" / "er").mkdir(parents=True)
    payloads = {
        "empty.bin": b"",
        "text.txt": "café ✓\n".encode() * 50,
        "deep/random.bin": bytes(range(256)) * 40,
        "deep/er/zeros.bin": b"\x00" * 100_000,
    }
    for rel, data in payloads.items():
        (src / rel).write_bytes(data)

    archive = tmp_path / "rt.zip"
    archive_service.create_archive([str(src)], str(archive))
    archive_service.expand_archive(str(archive), str(tmp_path / "out"))

    for rel, data in payloads.items():
        assert (tmp_path / "out" / rel).read_bytes() == data


def test_create_twice_is_idempotent(
    archive_service: ArchiveService, source_tree: Path, tmp_path: Path
) -> None:
    archive = tmp_path / "out.zip"
    archive_service.create_archive([str(source_tree)], str(archive))
    first = _entries(archive)

    archive_service.create_archive([str(source_tree)], str(archive))

    assert _entries(archive) == first


def test_add_then_readd_then_force(
    archive_service: ArchiveService, source_tree: Path, tmp_path: Path
) -> None:
    archive = tmp_path / "out.zip"
    archive_service.create_archive([str(source_tree)], str(archive))
    size_3 = archive.stat().st_size

    d = tmp_path / "d.txt"
    d.write_bytes(b"delta\n" * 10)
    report = archive_service.add_to_archive([str(d)], str(archive))
    size_4 = archive.stat().st_size

    assert [a.entry_name for a in report.added] == ["d.txt"]
    assert len(_entries(archive)) == 4
    assert size_4 > size_3

    report = archive_service.add_to_archive([str(d)], str(archive))

    assert report.added == []
    assert report.skipped == ["d.txt"]
    assert report.errors == []
    assert archive.stat().st_size == size_4

    d.write_bytes(bytes(range(256)) * 16)
    report = archive_service.add_to_archive([str(d)], str(archive), force=True)

    entries = _entries(archive)
    assert report.added[0].replaced is True
    assert len(entries) == 4
    assert entries["d.txt"] == d.read_bytes()
    assert archive.stat().st_size != size_4


def test_extract_conflict_policy(
    archive_service: ArchiveService, source_tree: Path, tmp_path: Path
) -> None:
    archive = tmp_path / "out.zip"
    archive_service.create_archive([str(source_tree)], str(archive))
    target = tmp_path / "E"
    target.mkdir()
    (target / "a.txt").write_bytes(b"mine")

    report = archive_service.expand_archive(str(archive), str(target))

    assert report.skipped == ["a.txt"]
    assert (target / "a.txt").read_bytes() == b"mine"
    assert (target / "b.txt").exists()

    archive_service.expand_archive(str(archive), str(target), force=True)

    assert (target / "a.txt").read_bytes() == (source_tree / "a.txt").read_bytes()
