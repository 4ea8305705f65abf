"""Per shape kind drawing and editing behaviour."""
