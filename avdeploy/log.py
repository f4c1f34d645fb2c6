# SPDX-License-Identifier: MIT
"""Package logger set-up shared by every ``avdeploy`` module."""
from __future__ import annotations

import logging
import os
import sys

logger = logging.getLogger("avdeploy")
if not logger.handlers:
    _h = logging.StreamHandler(sys.stdout)
    _h.setFormatter(
        logging.Formatter("[%(asctime)s] [%(levelname)s] %(name)s – %(message)s")
    )
    logger.addHandler(_h)
logger.setLevel(os.getenv("AVDEPLOY_LOG_LEVEL", "INFO").upper())
