"""HerDay deferred Web Push delivery service."""

__version__ = "0.1.0"
