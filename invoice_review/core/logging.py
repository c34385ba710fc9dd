"""
Loguru setup shared by the API and the CLI entry point.
"""

import sys

from loguru import logger

from .config import Settings, settings as default_settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
    "<level>{message}</level> {extra}"
)


def setup_logging(app_settings: Settings | None = None):
    """
    Configure the global loguru logger and return it.

    Replaces loguru's default stderr sink so repeated calls (one per
    create_app) do not stack handlers.
    """
    cfg = app_settings or default_settings

    logger.remove()
    if cfg.log_json:
        logger.add(sys.stderr, level=cfg.log_level.upper(), serialize=True)
    else:
        logger.add(sys.stderr, level=cfg.log_level.upper(), format=LOG_FORMAT)

    return logger.bind(app=cfg.app_name, env=cfg.app_env)
