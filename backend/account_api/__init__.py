"""Expose the application factory at package level.

Provide convenient access to :func:`account_api.factory.create_app` so callers
can ``from account_api import create_app`` (e.g. ``gunicorn
"account_api:create_app()"``).
"""

from __future__ import annotations

from .factory import create_app

__all__ = ["create_app"]
