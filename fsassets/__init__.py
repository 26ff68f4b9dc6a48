"""Filesystem Assets - local filesystem blob storage with a public URL namespace."""

__version__ = "0.1.0"
