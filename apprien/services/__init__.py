"""Apprien SDK services."""
