"""
Workflow Configuration
"""
import os
import logging

from dotenv import load_dotenv

from .timeouts import (
    HTTP_REQUEST_TIMEOUT,
    HTTP_ANALYSIS_TIMEOUT,
    HTTP_IMAGE_TIMEOUT,
    THREAD_POOL_TIMEOUT,
)

load_dotenv()
logger = logging.getLogger(__name__)


class WorkflowConfig:
    """Centralized configuration for the Engenie backend client and conversation workflow"""

    # Backend Configuration
    BASE_URL = os.getenv("ENGENIE_BASE_URL", "http://localhost:5000")

    # Timeout Configuration (in seconds)
    REQUEST_TIMEOUT = int(os.getenv("HTTP_REQUEST_TIMEOUT", str(HTTP_REQUEST_TIMEOUT)))
    ANALYSIS_TIMEOUT = int(os.getenv("HTTP_ANALYSIS_TIMEOUT", str(HTTP_ANALYSIS_TIMEOUT)))
    IMAGE_TIMEOUT = int(os.getenv("HTTP_IMAGE_TIMEOUT", str(HTTP_IMAGE_TIMEOUT)))

    # Retry Configuration (idempotent GETs only)
    MAX_RETRIES = int(os.getenv("HTTP_MAX_RETRIES", "3"))
    BACKOFF_FACTOR = float(os.getenv("HTTP_BACKOFF_FACTOR", "0.5"))

    # Parallel Processing Configuration
    IMAGE_FETCH_WORKERS = int(os.getenv("IMAGE_FETCH_WORKERS", "5"))
    THREAD_POOL_TIMEOUT = int(os.getenv("THREAD_POOL_TIMEOUT", str(THREAD_POOL_TIMEOUT)))

    # Analysis Configuration
    APPROXIMATE_MATCH_THRESHOLD = float(os.getenv("APPROXIMATE_MATCH_THRESHOLD", "50"))

    @classmethod
    def validate(cls):
        """
        Validate configuration settings.

        Raises:
            ValueError: If a configuration value is missing or invalid
        """
        if not cls.BASE_URL:
            raise ValueError(
                "ENGENIE_BASE_URL is required. "
                "Please set it in your .env file or environment variables."
            )

        if not cls.BASE_URL.startswith(("http://", "https://")):
            raise ValueError(f"ENGENIE_BASE_URL must be an http(s) URL (got {cls.BASE_URL})")

        if cls.REQUEST_TIMEOUT < 1:
            raise ValueError(f"HTTP_REQUEST_TIMEOUT must be at least 1 (got {cls.REQUEST_TIMEOUT})")

        if cls.MAX_RETRIES < 0:
            raise ValueError(f"HTTP_MAX_RETRIES must be non-negative (got {cls.MAX_RETRIES})")

        if cls.IMAGE_FETCH_WORKERS < 1:
            raise ValueError(f"IMAGE_FETCH_WORKERS must be at least 1 (got {cls.IMAGE_FETCH_WORKERS})")

        if not (0.0 <= cls.APPROXIMATE_MATCH_THRESHOLD <= 100.0):
            raise ValueError(
                f"APPROXIMATE_MATCH_THRESHOLD must be between 0 and 100 (got {cls.APPROXIMATE_MATCH_THRESHOLD})"
            )

    @classmethod
    def log_config(cls):
        """Log current configuration"""
        logger.info("=" * 60)
        logger.info("ENGENIE CLIENT CONFIGURATION")
        logger.info("=" * 60)
        logger.info(f"Base URL: {cls.BASE_URL}")
        logger.info(f"Request Timeout: {cls.REQUEST_TIMEOUT}s")
        logger.info(f"Analysis Timeout: {cls.ANALYSIS_TIMEOUT}s")
        logger.info(f"Image Timeout: {cls.IMAGE_TIMEOUT}s")
        logger.info(f"Max Retries: {cls.MAX_RETRIES} (backoff {cls.BACKOFF_FACTOR})")
        logger.info(f"Image Fetch Workers: {cls.IMAGE_FETCH_WORKERS}")
        logger.info(f"Approximate Match Threshold: {cls.APPROXIMATE_MATCH_THRESHOLD}")
        logger.info("=" * 60)
