"""Package entry point: ``python -m zipmason ...``."""

from __future__ import annotations

import sys

from zipmason.cli import main

if __name__ == "__main__":
    sys.exit(main())
