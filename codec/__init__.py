"""Structured report encoding of annotation groups."""
