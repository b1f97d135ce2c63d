"""Browser front end for the WriteOnly editor."""

from .server import WebServer

__all__ = ["WebServer"]
