"""Core install, update and removal machinery."""
