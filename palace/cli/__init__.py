"""Command line interface for palace."""
