# -*- coding: utf-8 -*-
from importlib.metadata import PackageNotFoundError, version

from loguru import logger

try:
    __version__ = version("geokern")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"

logger.disable("geokern")
