"""HTTP and websocket interface."""

from coinwhisperer.api.app import create_app

__all__ = ["create_app"]
