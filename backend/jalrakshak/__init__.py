"""JalRakshak water-quality monitoring backend."""

__version__ = "1.0.0"
