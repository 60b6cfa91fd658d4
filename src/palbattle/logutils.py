"""
Logging setup for palbattle.

The library never installs handlers; applications configure logging.
"""

import logging

logger = logging.getLogger("palbattle")
logger.addHandler(logging.NullHandler())
