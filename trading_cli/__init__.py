"""Trade Nexus operator CLI for the Platform API."""

import logging

__version__ = "0.4.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
