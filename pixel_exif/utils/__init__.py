"""Shared helpers: formatting, exports and structured logging."""
