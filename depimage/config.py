"""Environment-driven defaults. CLI options take precedence over these."""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_CACHE_DIR = Path(os.environ.get("DEPIMAGE_CACHE_DIR", "cache"))
DOCKER_BIN = os.environ.get("DEPIMAGE_DOCKER", "docker")
LOG_LEVEL = os.environ.get("DEPIMAGE_LOG_LEVEL", "INFO").upper()

VERSION_PREFIX = "python_version=="
PIP_INSTALL = "pip install --no-cache-dir"
DEFAULT_WORKDIR = "/app"
