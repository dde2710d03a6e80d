"""Thread-safe data structures, a load generator and small concurrency tools."""

__version__ = "0.1.0"