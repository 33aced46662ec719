"""Shared pytest fixtures: database, configuration, catalog data and the API client."""

from .auth import *  # noqa: F401,F403
from .catalog import *  # noqa: F401,F403
from .core import *  # noqa: F401,F403
