"""HTTP API for tag trees."""

from tagtree.server.app import create_app, start_server

__all__ = ["create_app", "start_server"]
