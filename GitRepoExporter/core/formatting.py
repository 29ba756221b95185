"""
Human-readable labels used in progress events and run summaries.
"""

BYTE_UNITS = ["Bytes", "KB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB"]


def censor(owner: str, name: str) -> str:
    """
    Hide most of an owner/name pair, e.g. for private repositories.

    The first three characters of each part are kept; parts shorter than
    four characters are fully hidden.
    """
    def hide(text: str) -> str:
        if len(text) < 4:
            return "*" * len(text)
        return text[:3] + "*" * (len(text) - 3)

    return f"{hide(owner)}/{hide(name)}"


def format_bytes(size: int, decimals: int = 2) -> str:
    """
    Format a byte amount using 1024-based units.

    Args:
        size: Amount of bytes (must not be negative)
        decimals: Maximum decimal places (negative values mean none)

    Returns:
        Formatted string such as "1.27 KB"
    """
    if size < 0:
        raise ValueError(f'Bytes must be above 0; got "{size}"')

    if size == 0:
        return "0 Bytes"

    decimals = max(decimals, 0)
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(BYTE_UNITS) - 1:
        value /= 1024
        unit += 1

    text = f"{value:.{decimals}f}"
    if decimals > 0:
        text = text.rstrip("0").rstrip(".")

    return f"{text} {BYTE_UNITS[unit]}"


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def format_elapsed(seconds: float) -> str:
    """Format a duration as e.g. "1 hour, 2 minutes and 3 seconds"."""
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)

    parts = [
        _plural(value, word)
        for value, word in ((hours, "hour"), (minutes, "minute"), (secs, "second"))
        if value > 0
    ]

    if not parts:
        return _plural(0, "second")
    if len(parts) == 1:
        return parts[0]
    return ", ".join(parts[:-1]) + " and " + parts[-1]
