"""HTTP API exposing recently viewed resolution to storefront renderers."""

from recentview.api.app import create_app

__all__ = ["create_app"]
