"""Interactive editing: drawing, dragging and bounds."""
