"""Position grouping, shape factories and renderable nodes."""
