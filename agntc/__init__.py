"""agntc - install and update agent skills and plugins from git or local paths."""

__version__ = "0.1.0"
