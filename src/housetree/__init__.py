"""housetree: decision tree classification of house price buckets, with graph export."""

from loguru import logger

from housetree.config import PipelineSettings
from housetree.logging import PACKAGE_NAME, enable_logging
from housetree.pipeline import run_pipeline

logger.disable(PACKAGE_NAME)  # noqa: RUF067 - Disable logging for the housetree module by default

__all__ = [
    "PipelineSettings",
    "enable_logging",
    "run_pipeline",
]
