"""pysysmon - a top-like terminal process monitor for Linux."""

__version__ = "0.1.0"
