# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Engine config — defaults, config file loading, logging setup.
"""

import logging

from core.paths import get_paths
from engagement.schemas import EngineConfig, load_validated, save_validated

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def load_config() -> EngineConfig:
    """Load engine config. Missing or invalid file gives defaults."""
    return load_validated(get_paths().config_file, EngineConfig)


def save_config(config: EngineConfig) -> None:
    save_validated(get_paths().config_file, config)


def setup_logging(level: int = logging.INFO, stderr: bool = True) -> logging.Logger:
    """Route all aurizen.* loggers to the data-dir log file (+ stderr)."""
    p = get_paths()
    p.log_file.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger("aurizen")
    logger.setLevel(level)

    fh = logging.FileHandler(str(p.log_file), mode="a")
    fh.setLevel(level)
    fh.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    logger.addHandler(fh)

    if stderr:
        sh = logging.StreamHandler()
        sh.setLevel(level)
        sh.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        logger.addHandler(sh)

    return logger
