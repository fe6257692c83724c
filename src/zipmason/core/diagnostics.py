"""Runtime diagnostics envelope + JSONL sink.

This module provides:
- A canonical envelope schema for diagnostic events.
- A JSONL sink that can be enabled/disabled via ConfigResolver.

The sink is registered once per process and self-filters when disabled.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from zipmason.core.config import ConfigResolver
from zipmason.core.errors import ConfigError
from zipmason.core.events import get_event_bus
from zipmason.core.logging import get_logger

_logger = get_logger(__name__)

_ENVELOPE_KEYS = frozenset({"event", "component", "operation", "timestamp", "data"})


def build_envelope(
    *,
    event: str,
    component: str,
    operation: str,
    data: dict[str, Any],
) -> dict[str, Any]:
    """Build the canonical diagnostics envelope.

    Schema:
        {
          "event": "<string>",
          "component": "<string>",
          "operation": "<string>",
          "timestamp": "<iso8601 utc>",
          "data": { ... }
        }

    Timestamp is emitted in UTC with a trailing 'Z'.
    """
    ts = datetime.now(UTC).replace(microsecond=0).isoformat().replace("+00:00", "Z")
    return {
        "event": event,
        "component": component,
        "operation": operation,
        "timestamp": ts,
        "data": data,
    }


def is_diagnostics_enabled(resolver: ConfigResolver) -> bool:
    """Return whether diagnostics are enabled (key: diagnostics.enabled)."""
    try:
        return resolver.resolve_bool("diagnostics.enabled", False)
    except ConfigError:
        _logger.warning("Invalid diagnostics.enabled value; treating as disabled.")
        return False


def _is_envelope(obj: Any) -> bool:
    if not isinstance(obj, dict) or set(obj.keys()) != _ENVELOPE_KEYS:
        return False
    return isinstance(obj.get("data"), dict)


_SINK_INSTALLED = False


def install_jsonl_sink(*, resolver: ConfigResolver) -> None:
    """Install the JSONL diagnostics sink subscriber.

    Idempotent. Sink path:
        <diagnostics.dir>/diagnostics.jsonl

    When diagnostics are disabled, the subscriber performs no file IO.
    """
    global _SINK_INSTALLED
    if _SINK_INSTALLED:
        return

    def _on_any_event(event: str, data: dict[str, Any]) -> None:
        if not is_diagnostics_enabled(resolver):
            return

        try:
            diag_dir, _src = resolver.resolve("diagnostics.dir")
        except ConfigError:
            _logger.warning("Missing diagnostics.dir; cannot write diagnostics JSONL.")
            return
        out_path = Path(str(diag_dir)).expanduser() / "diagnostics.jsonl"

        if _is_envelope(data):
            payload = data
        else:
            payload = build_envelope(
                event=event, component="unknown", operation="unknown", data=data
            )

        try:
            out_path.parent.mkdir(parents=True, exist_ok=True)
            line = json.dumps(payload, ensure_ascii=True, separators=(",", ":"), sort_keys=True)
            with out_path.open("a", encoding="utf-8") as f:
                f.write(line)
                f.write("\n")
        except OSError as e:
            _logger.warning(f"Diagnostics sink write failed: {type(e).__name__}: {e}")

    get_event_bus().subscribe_all(_on_any_event)
    _SINK_INSTALLED = True
