"""
Logging utilities for weno_hybrid.

Usage:
    >>> from weno_hybrid.utils.weno_logging import get_logger, configure_logging
    >>> logger = get_logger(__name__)
    >>> configure_logging(level="DEBUG")
    >>> logger.info("Starting reconstruction...")
"""

from __future__ import annotations

from .logger import (
    WENOLogger,
    configure_logging,
    get_logger,
    log_performance_metric,
    log_reconstruction_completion,
    log_reconstruction_start,
    log_validation_error,
)

__all__ = [
    "WENOLogger",
    "configure_logging",
    "get_logger",
    "log_performance_metric",
    "log_reconstruction_completion",
    "log_reconstruction_start",
    "log_validation_error",
]
