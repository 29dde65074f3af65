"""
HTTP query boundary (FastAPI).

Run with ``linkspine serve`` or any ASGI server pointed at
``linkspine.api.app:create_app`` (factory).
"""

from linkspine.api.app import create_app

__all__ = ["create_app"]
