"""Time formatting utilities."""


def format_timestamp_short(seconds: float) -> str:
    """Format seconds as a compact speech timestamp (M:SS).

    Args:
        seconds: Time in seconds from speech start

    Returns:
        Formatted string like "1:05"
    """
    seconds = max(0.0, seconds)
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}:{secs:02d}"
