"""Bundle configuration and manifest schemas."""
