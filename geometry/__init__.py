"""Points, indices, matrices and volume geometry."""
