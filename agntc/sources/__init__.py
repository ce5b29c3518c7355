"""Bundle source parsing and fetching."""
