"""
Helper functions for turning byte counts and durations into display strings.
"""

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_size(bytes_size: int) -> str:
    """Formats a byte count, e.g. '14.2 MB'."""
    if bytes_size <= 0:
        return "0 B"
    size = float(bytes_size)
    for unit in _SIZE_UNITS[:-1]:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} {_SIZE_UNITS[-1]}"


def format_duration(seconds: float) -> str:
    """Wall-clock time spent, e.g. '2m 5s'."""
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    parts = [
        f"{value}{suffix}"
        for value, suffix in ((hours, "h"), (minutes, "m"))
        if value > 0
    ]
    if secs > 0 or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)


def format_playtime(seconds: float) -> str:
    """
    Media running time as a player would show it: '0:07', '4:32', '1:02:09'.
    Fractions of a second are rounded.
    """
    minutes, secs = divmod(round(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_fragment_count(count: int) -> str:
    return f"{count} fragment" if count == 1 else f"{count} fragments"
