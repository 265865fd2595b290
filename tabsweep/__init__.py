"""TabSweep: find and close duplicate, pinned and stale Safari tabs."""

__version__ = "0.3.0"
