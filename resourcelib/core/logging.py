"""Logging setup for applications built on resourcelib.

Modules log through ``logging.getLogger(__name__)``; this only configures the
root handler once from settings.
"""

import logging
from typing import Optional

from resourcelib.core.settings.settings import ResourcelibSettings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(settings: Optional[ResourcelibSettings] = None) -> None:
    """Configure root logging with the level from settings."""
    settings = settings or ResourcelibSettings()
    logging.basicConfig(level=getattr(logging, settings.log_level), format=LOG_FORMAT)
    logging.getLogger('resourcelib').setLevel(settings.log_level)
