"""Pytest configuration and fixtures."""

import os
import sys
from pathlib import Path

import pytest

# Add src to path (for 'zipmason.*' imports without an install)
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root / "src"))


@pytest.fixture(autouse=True)
def _isolate_runtime_state(monkeypatch):
    """Reset process-wide logging, event bus and env state between tests."""
    import zipmason.core.diagnostics as diagnostics
    from zipmason.core.events import get_event_bus
    from zipmason.core.log_bus import get_log_bus
    from zipmason.core.logging import VerbosityLevel, set_colors, set_log_sink, set_verbosity

    for key in list(os.environ):
        if key.startswith("ZIPMASON_"):
            monkeypatch.delenv(key, raising=False)

    set_log_sink(None)
    get_event_bus().clear()
    get_log_bus().clear()
    diagnostics._SINK_INSTALLED = False
    set_verbosity(VerbosityLevel.NORMAL)
    set_colors(False)
    yield
    set_log_sink(None)
    get_event_bus().clear()
    get_log_bus().clear()
    diagnostics._SINK_INSTALLED = False
    set_verbosity(VerbosityLevel.NORMAL)


@pytest.fixture
def config_resolver(tmp_path):
    """ConfigResolver that never reads the real user or system config.

    Returns:
        ConfigResolver instance
    """
    from zipmason.core import ConfigResolver

    return ConfigResolver(
        cli_args={},
        user_config_path=tmp_path / "user_config.yaml",
        system_config_path=tmp_path / "system_config.yaml",
    )


@pytest.fixture
def archive_service(config_resolver):
    from zipmason.file_io.archives import ArchiveService

    return ArchiveService(config_resolver)


@pytest.fixture
def source_tree(tmp_path):
    """Directory D with a.txt, b.txt and S/c.txt.

    Returns:
        Path to D
    """
    root = tmp_path / "D"
    (root / "S").mkdir(parents=True)
    (root / "a.txt").write_bytes(b"alpha\n" * 20)
    (root / "b.txt").write_bytes(b"bravo\n" * 30)
    (root / "S" / "c.txt").write_bytes(b"charlie\n" * 40)
    return root
