"""Durable video record storage."""
