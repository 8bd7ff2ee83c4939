"""Notebook-style expression interpreter built on a table-driven LL(1) parser."""

__version__ = "0.3.0"
