# orderbrain/__init__.py
"""Dialogue core of the Polish food-ordering voice assistant."""
