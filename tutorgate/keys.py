"""Credential lookup for the upstream providers.

Keys are read from environment variables. For local runs they can also be
kept in ~/.tutorgate/keys.env or a project .env, loaded with this priority:
  1. Environment variables (highest, already set in the shell)
  2. ~/.tutorgate/keys.env
  3. .env in the current directory

Key values are never logged.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

# Directory for user-level configuration
TUTORGATE_HOME = Path.home() / ".tutorgate"
KEYS_FILE = TUTORGATE_HOME / "keys.env"


def load_keys_env(files: list[Path] | None = None) -> None:
    """Load API keys from keys.env and .env files into os.environ.

    Existing environment variables are NOT overwritten, and earlier files
    win over later ones.
    """
    for env_file in files if files is not None else [KEYS_FILE, Path.cwd() / ".env"]:
        if env_file.is_file():
            _load_env_file(env_file)


def _load_env_file(path: Path) -> None:
    """Parse a simple KEY=VALUE .env file and set vars that aren't already set."""
    try:
        for line in path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip().strip("'\"")
            if key and not os.environ.get(key):
                os.environ[key] = value
                logger.debug("Loaded %s from %s", key, path)
    except OSError:
        logger.debug("Could not read %s", path)


def get_key(env_var: str) -> str:
    """Return the stripped value of a credential variable, or ''."""
    return os.environ.get(env_var, "").strip()


def has_key(env_var: str) -> bool:
    """Whether a credential variable holds a non-blank value."""
    return bool(get_key(env_var))
