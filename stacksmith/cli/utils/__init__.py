"""Stacksmith CLI utilities."""
