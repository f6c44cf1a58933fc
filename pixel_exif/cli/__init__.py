"""
Command-Line Interface Layer.

Typer commands and the Rich formatters they render with.
"""
