"""Catalog, release manifest and promotion engine."""
