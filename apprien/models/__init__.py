"""Apprien data models."""
