"""
Logger factory for puttmcmc.

Every logger handed out here writes ``time | level | name | message`` lines to
stderr and, optionally, to a file. The default level can be overridden with
the ``PUTTMCMC_LOG_LEVEL`` environment variable (e.g. ``DEBUG`` to see the
per-iteration progress of the samplers).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

LEVEL_ENV_VAR = "PUTTMCMC_LOG_LEVEL"


def _resolve_level(level: Optional[Union[int, str]]) -> int:
    if level is None:
        level = os.environ.get(LEVEL_ENV_VAR, logging.INFO)
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level {level!r}.")
        return resolved
    return int(level)


class PuttLogger:
    """Factory class for configured puttmcmc loggers."""

    _formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    @classmethod
    def get_logger(
        cls,
        name: str = "puttmcmc",
        level: Optional[Union[int, str]] = None,
        log_file: Optional[str] = None,
        propagate: bool = False,
    ) -> logging.Logger:
        """
        Return the logger ``name`` with a single stream handler attached.

        Repeated calls return the same logger without stacking handlers; a file
        handler is added at most once per file.
        """
        logger = logging.getLogger(name)
        logger.setLevel(_resolve_level(level))
        logger.propagate = propagate

        if not any(type(handler) is logging.StreamHandler for handler in logger.handlers):
            stream_handler = logging.StreamHandler()
            stream_handler.setFormatter(cls._formatter)
            logger.addHandler(stream_handler)

        if log_file is not None:
            log_path = Path(log_file).resolve()
            if not any(
                isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == log_path
                for handler in logger.handlers
            ):
                log_path.parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.FileHandler(log_path)
                file_handler.setFormatter(cls._formatter)
                logger.addHandler(file_handler)

        return logger

    @staticmethod
    def chain_logger(parent: logging.Logger, chain_index: int) -> logging.Logger:
        """
        Child of ``parent`` named ``<parent>.chain<k>``.

        Records propagate to the parent's handlers, so chains of one run share
        its output while staying distinguishable by name.
        """
        child = parent.getChild(f"chain{chain_index}")
        child.setLevel(logging.NOTSET)
        child.propagate = True
        return child

    @staticmethod
    def set_level(level: Union[int, str], name: str = "puttmcmc") -> None:
        """Set the level of ``name`` and of every already-created logger below it."""
        resolved = _resolve_level(level)
        logging.getLogger(name).setLevel(resolved)
        prefix = name + "."
        for logger_name, logger in logging.Logger.manager.loggerDict.items():
            if logger_name.startswith(prefix) and isinstance(logger, logging.Logger):
                logger.setLevel(resolved)
