from __future__ import annotations

import os
from pathlib import Path


def load_dotenv(path: str | Path = ".env") -> list[str]:
    """Load KEY=VALUE pairs from a .env file into ``os.environ``.

    Blank lines and ``#`` comments are skipped, an optional ``export`` prefix is
    accepted and matching single or double quotes around the value are stripped.
    Variables already present in the environment win. Returns the keys set.
    """
    p = Path(path)
    if not p.is_file():
        return []
    try:
        lines = p.read_text(encoding="utf-8").splitlines()
    except OSError:
        return []

    loaded: list[str] = []
    for line in lines:
        entry = line.strip()
        if not entry or entry.startswith("#") or "=" not in entry:
            continue
        if entry.startswith("export "):
            entry = entry[len("export "):].lstrip()
        key, value = (part.strip() for part in entry.split("=", 1))
        if not key or key in os.environ:
            continue
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
            value = value[1:-1]
        os.environ[key] = value
        loaded.append(key)
    return loaded
