"""Command-line interface for caprouter."""
