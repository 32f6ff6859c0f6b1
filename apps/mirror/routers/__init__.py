"""API routers."""

from . import health, pypi

__all__ = ["health", "pypi"]
