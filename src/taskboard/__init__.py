"""Multi-user task board served as a JSON API and server-rendered pages."""

__version__ = "0.1.0"
