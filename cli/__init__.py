"""Command-line interface for planetforge."""
