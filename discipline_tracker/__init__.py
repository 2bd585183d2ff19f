"""Weekly discipline tracking engine: records, analytics, reminders and scheduling."""

from .version import __version__

__all__ = ["__version__"]
