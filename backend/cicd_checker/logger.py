"""
Logging configuration.
"""
import logging
import sys

from cicd_checker.config import settings

# Create logger
logger = logging.getLogger("cicd_checker")
logger.setLevel(settings.LOG_LEVEL)

# Console handler
console_handler = logging.StreamHandler(sys.stdout)

# Formatter
formatter = logging.Formatter(
    "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
console_handler.setFormatter(formatter)

# Add handler
if not logger.handlers:
    logger.addHandler(console_handler)

# httpx logs every GitHub request at INFO; an analysis makes dozens
logging.getLogger("httpx").setLevel(max(logging.WARNING, logger.level))
