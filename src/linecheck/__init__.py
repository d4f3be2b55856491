"""Scripted checker for line-oriented IPC protocol servers."""

__version__ = "0.1.0"
