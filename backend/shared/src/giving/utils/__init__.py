"""Utility helpers for the giving gateway."""
