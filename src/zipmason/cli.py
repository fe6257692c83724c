"""zipmason command line interface.

Usage:
    zipmason create DEST SOURCE... [--literal] [-l LEVEL] [--force] [--no-clobber]
    zipmason add DEST SOURCE... [--literal] [-l LEVEL] [--force]
    zipmason list ARCHIVE... [--include PATTERN] [--json]
    zipmason expand ARCHIVE DEST [--force] [--include PATTERN]
    zipmason test ARCHIVE

Exit codes: 0 success, 1 finished with per-item errors, 2 fatal error.
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from zipmason import __version__
from zipmason.core.config import ConfigResolver
from zipmason.core.diagnostics import install_jsonl_sink
from zipmason.core.errors import ZipMasonError
from zipmason.core.logging import apply_logging_policy, get_logger, set_colors
from zipmason.file_io.archives import ArchiveService, CompressionLevel

log = get_logger(__name__)

EXIT_OK = 0
EXIT_ITEM_ERRORS = 1
EXIT_FATAL = 2


@dataclass(frozen=True)
class ZipMasonCLIArgs:
    command: str
    archive: str = ""
    destination: str = ""
    paths: tuple[str, ...] = ()
    literal: bool = False
    level: str | None = None
    force: bool | None = None
    no_clobber: bool = False
    include: str | None = None
    as_json: bool = False
    verbosity: str | None = None
    no_color: bool = False
    config: str | None = None


def _global_options(*, suppress_defaults: bool) -> argparse.ArgumentParser:
    # Subcommand copies must not reset values given before the subcommand.
    kw: dict[str, Any] = {"default": argparse.SUPPRESS} if suppress_defaults else {}
    common = argparse.ArgumentParser(add_help=False)
    verbosity = common.add_mutually_exclusive_group()
    for flags, level in (
        (("-q", "--quiet"), "quiet"),
        (("-v", "--verbose"), "verbose"),
        (("-d", "--debug"), "debug"),
    ):
        verbosity.add_argument(*flags, dest="verbosity", action="store_const", const=level, **kw)
    common.add_argument("--no-color", action="store_true", **kw)
    common.add_argument("--config", help="user config YAML file", **kw)
    return common


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="zipmason", parents=[_global_options(suppress_defaults=False)]
    )
    common = _global_options(suppress_defaults=True)
    p.add_argument("--version", action="version", version=f"zipmason {__version__}")
    sub = p.add_subparsers(dest="command", required=True)

    levels = [c.value for c in CompressionLevel]

    create = sub.add_parser("create", parents=[common], help="create an archive")
    create.add_argument("destination")
    create.add_argument("paths", nargs="+")
    create.add_argument("--literal", action="store_true")
    create.add_argument("-l", "--level", choices=levels, default=None)
    create.add_argument("--force", action="store_true", default=None)
    create.add_argument("--no-clobber", action="store_true")

    add = sub.add_parser("add", parents=[common], help="add files to an archive")
    add.add_argument("destination")
    add.add_argument("paths", nargs="+")
    add.add_argument("--literal", action="store_true")
    add.add_argument("-l", "--level", choices=levels, default=None)
    add.add_argument("--force", action="store_true", default=None)

    lst = sub.add_parser("list", parents=[common], help="list archive entries")
    lst.add_argument("paths", nargs="+")
    lst.add_argument("--literal", action="store_true")
    lst.add_argument("--include", default=None)
    lst.add_argument("--json", dest="as_json", action="store_true")

    expand = sub.add_parser("expand", parents=[common], help="extract an archive")
    expand.add_argument("archive")
    expand.add_argument("destination")
    expand.add_argument("--literal", action="store_true")
    expand.add_argument("--force", action="store_true", default=None)
    expand.add_argument("--include", default=None)

    test = sub.add_parser("test", parents=[common], help="check archive integrity")
    test.add_argument("archive")
    test.add_argument("--literal", action="store_true")

    return p


def parse_cli_args(argv: list[str]) -> ZipMasonCLIArgs:
    """Parse argv for unit tests and main()."""
    ns = _build_parser().parse_args(argv)
    return ZipMasonCLIArgs(
        command=str(ns.command),
        archive=str(getattr(ns, "archive", "") or ""),
        destination=str(getattr(ns, "destination", "") or ""),
        paths=tuple(getattr(ns, "paths", ()) or ()),
        literal=bool(getattr(ns, "literal", False)),
        level=getattr(ns, "level", None),
        force=getattr(ns, "force", None),
        no_clobber=bool(getattr(ns, "no_clobber", False)),
        include=getattr(ns, "include", None),
        as_json=bool(getattr(ns, "as_json", False)),
        verbosity=ns.verbosity,
        no_color=bool(ns.no_color),
        config=ns.config,
    )


def _cli_overrides(args: ZipMasonCLIArgs) -> dict[str, Any]:
    """Map CLI flags onto config keys (highest priority layer)."""
    out: dict[str, Any] = {}
    if args.verbosity:
        out.setdefault("logging", {})["level"] = args.verbosity
    if args.no_color:
        out.setdefault("logging", {})["color"] = False
    if args.level:
        out.setdefault("archives", {})["compression"] = args.level
    if args.force is not None:
        out.setdefault("archives", {})["force"] = args.force
    return out


def _exit_code(errors: list[str]) -> int:
    return EXIT_ITEM_ERRORS if errors else EXIT_OK


def _cmd_create(service: ArchiveService, args: ZipMasonCLIArgs) -> int:
    result = service.create_archive(
        list(args.paths),
        args.destination,
        literal=args.literal,
        no_clobber=args.no_clobber,
    )
    print(f"{result.archive.path} {result.archive.size}")
    return _exit_code(result.report.errors)


def _cmd_add(service: ArchiveService, args: ZipMasonCLIArgs) -> int:
    report = service.add_to_archive(list(args.paths), args.destination, literal=args.literal)
    for added in report.added:
        print(f"{added.entry_name} {added.size}")
    return _exit_code(report.errors)


def _cmd_list(service: ArchiveService, args: ZipMasonCLIArgs) -> int:
    entries = service.list_entries(list(args.paths), literal=args.literal, include=args.include)
    if args.as_json:
        rows = [
            {
                "archive": str(e.archive_path),
                "name": e.name,
                "compressed_size": e.compressed_size,
                "size": e.size,
                "is_dir": e.is_dir,
            }
            for e in entries
        ]
        print(json.dumps(rows, indent=2))
        return EXIT_OK
    for e in entries:
        print(f"{e.compressed_size:>12} {e.size:>12} {e.name}")
    return EXIT_OK


def _cmd_expand(service: ArchiveService, args: ZipMasonCLIArgs) -> int:
    report = service.expand_archive(
        args.archive, args.destination, literal=args.literal, include=args.include
    )
    for f in report.files:
        print(str(f.path))
    return _exit_code(report.errors)


def _cmd_test(service: ArchiveService, args: ZipMasonCLIArgs) -> int:
    bad = service.test_archive(args.archive, literal=args.literal)
    for name in bad:
        print(name)
    return _exit_code(bad)


_COMMANDS: dict[str, Callable[[ArchiveService, ZipMasonCLIArgs], int]] = {
    "create": _cmd_create,
    "add": _cmd_add,
    "list": _cmd_list,
    "expand": _cmd_expand,
    "test": _cmd_test,
}


def main(argv: list[str] | None = None) -> int:
    args = parse_cli_args(sys.argv[1:] if argv is None else argv)

    resolver = ConfigResolver(
        cli_args=_cli_overrides(args),
        user_config_path=Path(args.config).expanduser() if args.config else None,
    )

    try:
        apply_logging_policy(resolver.resolve_logging_policy())
        set_colors(resolver.resolve_bool("logging.color", True))
        install_jsonl_sink(resolver=resolver)
        log.debug(f"zipmason command={args.command!r}")
        return _COMMANDS[args.command](ArchiveService(resolver), args)
    except ZipMasonError as e:
        log.error(str(e))
        return EXIT_FATAL
    except KeyboardInterrupt:
        log.error("Interrupted by user")
        return 130
