"""Undoable commands and the undo stack."""
