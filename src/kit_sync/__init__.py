"""kit-sync - reconcile managed kit files against local edits."""

__version__ = "0.1.0"
