"""
Helper functions for formatting data into human-readable strings.
"""

from decimal import ROUND_HALF_UP, Decimal


def _two_places(value: float) -> Decimal:
    return Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def format_file_size(bytes_size: int) -> str:
    """
    Formats a file size the way records display it: '2.00 MB' once the rounded
    megabyte value exceeds 1, otherwise kilobytes ('500.00 KB').
    """
    size_mb = _two_places(bytes_size / (1024 * 1024))
    if size_mb > 1:
        return f"{size_mb} MB"
    return f"{_two_places(bytes_size / 1024)} KB"


def format_size(bytes_size: int) -> str:
    """Formats bytes into a human-readable size string (e.g., '145.3 MB')."""
    if bytes_size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB", "TB"]
    i = 0
    while bytes_size >= 1024 and i < len(units) - 1:
        bytes_size /= 1024
        i += 1
    return f"{bytes_size:.1f} {units[i]}"


def format_duration(seconds: float) -> str:
    """
    Formats a duration in seconds into a human-readable string (e.g., '2m 12s').
    """
    s = int(seconds)
    hours, remainder = divmod(s, 3600)
    minutes, secs = divmod(remainder, 60)
    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0 or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)


def format_coordinates(latitude: float, longitude: float) -> str:
    """Formats a position as 'lat,lon' with the precision the decoder provides."""
    return f"{latitude},{longitude}"


def truncate(text: str, max_length: int = 80) -> str:
    """Shortens long tag values for table display."""
    if len(text) <= max_length:
        return text
    return text[: max_length - 1] + "…"
