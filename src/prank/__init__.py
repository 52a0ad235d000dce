"""Multi-criteria scoring and ranking engine."""

__version__ = "0.1.0"
