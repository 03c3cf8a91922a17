"""CLI commands for the load balancer upgrade tool."""

from .journal import journal
from .migrate import migrate

__all__ = ["journal", "migrate"]
