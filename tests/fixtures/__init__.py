"""Shared pytest fixtures for the product catalog tests."""

from .core import *  # noqa: F401,F403
from .stores import *  # noqa: F401,F403
from .web import *  # noqa: F401,F403
