"""Put the test environment in place before messaging_service.config is imported."""
from __future__ import annotations

import os
from pathlib import Path

ENV_TEST_FILE = Path(__file__).resolve().parent / ".env.test"


def _export_env_file(path: Path) -> None:
    if not path.is_file():
        return
    for raw in path.read_text().splitlines():
        key, sep, value = raw.strip().partition("=")
        if not sep or key.startswith("#"):
            continue
        # Real environment variables win over the file.
        os.environ.setdefault(key.strip(), value.strip())


_export_env_file(ENV_TEST_FILE)
