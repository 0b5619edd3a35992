"""REST API for the resort booking core."""
