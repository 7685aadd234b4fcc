"""
Environment file resolution.

Settings are read from process environment variables first, then from the
env files below (later files override earlier ones). ``ENV_FILE_PATH``
selects the environment-specific file.
"""

import os

DEFAULT_ENV_FILE = ".env.development"


def env_files() -> tuple[str, ...]:
    """Return the .env files to load, lowest priority first."""
    return (".env", os.getenv("ENV_FILE_PATH") or DEFAULT_ENV_FILE)
