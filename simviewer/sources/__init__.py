"""Concrete collaborators: simulator tooling, local files, and SQLite."""
