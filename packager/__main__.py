"""Entry point for ``python -m packager``."""
from __future__ import annotations

from .cli import main

if __name__ == "__main__":  # pragma: no cover - exercised via integration tests
    raise SystemExit(main())
