"""Environment variable configuration for the Open Library client.

Settings are loaded in priority order:
  1. Shell environment variables (highest priority)
  2. .env file in current directory
  3. ~/.bookfinder/.env (persistent config, set via `bookfinder env set`)

Run `bookfinder env` to see the value each setting resolves to.
Run `bookfinder env set NAME value` to save a value persistently.

Nothing is required; every variable has a working default:
    OPENLIBRARY_BASE_URL    ->  https://openlibrary.org
    OPENLIBRARY_COVERS_URL  ->  https://covers.openlibrary.org
    BOOKFINDER_PAGE_SIZE    ->  20
    BOOKFINDER_TIMEOUT      ->  unset (requests never time out)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv, set_key

from bookfinder.models import DEFAULT_PAGE_SIZE

CONFIG_DIR = Path.home() / ".bookfinder"
PERSISTENT_ENV = CONFIG_DIR / ".env"

DEFAULT_BASE_URL = "https://openlibrary.org"
DEFAULT_COVERS_URL = "https://covers.openlibrary.org"

# Load in reverse priority order (later loads don't overwrite existing)
if PERSISTENT_ENV.exists():
    load_dotenv(PERSISTENT_ENV)

load_dotenv()


# --- Persistent config ---

def save_key(name: str, value: str) -> Path:
    """Save a setting to ~/.bookfinder/.env and apply it to this process."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    # set_key refuses to create the file itself
    PERSISTENT_ENV.touch(exist_ok=True)
    set_key(PERSISTENT_ENV, name, value, quote_mode="never")
    os.environ[name] = value
    return PERSISTENT_ENV


# --- Accessors ---

def get_base_url() -> str:
    return (os.getenv("OPENLIBRARY_BASE_URL") or DEFAULT_BASE_URL).rstrip("/")


def get_covers_url() -> str:
    return (os.getenv("OPENLIBRARY_COVERS_URL") or DEFAULT_COVERS_URL).rstrip("/")


def get_page_size() -> int:
    raw = os.getenv("BOOKFINDER_PAGE_SIZE", "")
    if not raw:
        return DEFAULT_PAGE_SIZE
    try:
        size = int(raw)
    except ValueError:
        size = 0
    if size < 1:
        raise ValueError(
            f"BOOKFINDER_PAGE_SIZE must be a positive integer, got {raw!r}. "
            "Run `bookfinder env set BOOKFINDER_PAGE_SIZE 20` to fix it."
        )
    return size


def get_timeout() -> Optional[float]:
    """Timeout is optional — returns None (wait forever) if not set."""
    raw = os.getenv("BOOKFINDER_TIMEOUT", "")
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValueError(
            f"BOOKFINDER_TIMEOUT must be a number of seconds, got {raw!r}."
        ) from None


# --- Status check ---

ENV_VARS = {
    "OPENLIBRARY_BASE_URL": {
        "resolve": get_base_url,
        "description": "Open Library search and record API",
    },
    "OPENLIBRARY_COVERS_URL": {
        "resolve": get_covers_url,
        "description": "Open Library cover image host",
    },
    "BOOKFINDER_PAGE_SIZE": {
        "resolve": get_page_size,
        "description": "Results requested per page",
    },
    "BOOKFINDER_TIMEOUT": {
        "resolve": get_timeout,
        "description": "HTTP timeout in seconds",
    },
}

VALID_KEYS = set(ENV_VARS)


def effective_value(name: str) -> tuple[str, bool]:
    """Resolved value of a setting as display text, and whether it is valid."""
    try:
        value = ENV_VARS[name]["resolve"]()
    except ValueError as e:
        return str(e), False
    if value is None:
        return "no timeout", True
    return str(value), True


def check_env() -> list[tuple[str, bool, str, bool, str]]:
    """Return (name, is_set, effective, valid, description) for every setting."""
    result = []
    for var, info in ENV_VARS.items():
        effective, valid = effective_value(var)
        result.append((var, bool(os.getenv(var)), effective, valid, info["description"]))
    return result
