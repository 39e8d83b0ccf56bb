"""Formatting utilities for display."""


def format_km(km: float, decimals: int = 2) -> str:
    """Format a distance as "1.23 km"."""
    return f"{km:.{decimals}f} km"


def format_meters(meters: float) -> str:
    """Format an elevation or climb as whole meters, "104 m"."""
    return f"{meters:.0f} m"


def format_axis_km(value: float) -> str:
    """Chart x-axis tick label, "3k"."""
    return f"{value:g}k"


def format_signed_meters(meters: float, symbol: str) -> str:
    """Badge text such as "▲ 45m"."""
    return f"{symbol} {meters:.0f}m"
