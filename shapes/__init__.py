"""Mathematical shapes and their quantification."""
