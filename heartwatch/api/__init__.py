"""heartwatch status API."""

from heartwatch.api.main import create_app

__all__ = ["create_app"]
