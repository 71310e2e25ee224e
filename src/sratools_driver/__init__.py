"""Dispatching launcher for the SRA toolkit command-line tools."""

__version__ = "3.0.10"
