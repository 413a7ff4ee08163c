"""Lazy loading of file chunks and table pages."""
