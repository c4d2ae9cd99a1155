"""JSON API layer -- FastAPI application exposing the converter service."""

from redenom.api.app import create_app

__all__ = ["create_app"]
