"""Command-line interface for the serial debugger."""
