"""vaultsync - sync externally sourced meeting documents into a markdown vault."""

__version__ = "0.3.0"
