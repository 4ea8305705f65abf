"""Annotations, annotation groups and their events."""
