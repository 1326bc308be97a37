"""Shared pytest fixtures and helpers."""

from .core import *  # noqa: F401,F403
from .oidc import *  # noqa: F401,F403
from .stores import *  # noqa: F401,F403
