"""
Utility functions for SportFrei
"""

from datetime import datetime
from typing import Optional

NO_PACE = "--:--"
NO_VALUE = "---"


def format_duration(seconds: int) -> str:
    """
    Format duration in seconds as h:mm:ss

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string (e.g., "0:25:00", "1:02:03")
    """
    return f"{seconds // 3600}:{(seconds % 3600) // 60:02d}:{seconds % 60:02d}"


def format_hours_minutes(seconds: int) -> str:
    """Format duration as "1h 15m" for the detail view"""
    return f"{seconds // 3600}h {(seconds % 3600) // 60}m"


def format_pace(seconds_per_km: Optional[float]) -> str:
    """
    Format a pace in seconds per km as m:ss

    Args:
        seconds_per_km: Pace, or None when there is none

    Returns:
        Formatted pace (e.g., "5:00"), or "--:--" for None or zero
    """
    if not seconds_per_km:
        return NO_PACE
    minutes = int(seconds_per_km // 60)
    remaining = int(seconds_per_km % 60)
    return f"{minutes}:{remaining:02d}"


def pace_from_distance(distance_m: float, moving_time: int) -> str:
    """Format the pace of a single activity, "--:--" for zero distance"""
    if distance_m <= 0:
        return NO_PACE
    return format_pace(moving_time / (distance_m / 1000.0))


def format_km(meters: float, decimals: int = 1) -> str:
    """Format a distance in meters as kilometers"""
    return f"{meters / 1000.0:.{decimals}f}"


def format_optional(value: Optional[float], decimals: int = 0) -> str:
    """Format an optional number, "---" if missing"""
    if value is None:
        return NO_VALUE
    return f"{value:.{decimals}f}"


def format_row_date(dt: datetime) -> str:
    """Format an activity start time for a table row"""
    return dt.strftime("%m-%d %H:%M")


def get_sport_color(sport_type: str) -> str:
    """
    Get the rich color used for a sport type

    Args:
        sport_type: Strava sport type (e.g., "Run")

    Returns:
        Color name
    """
    colors = {
        "Run": "green",
        "Ride": "blue",
        "Swim": "cyan",
        "Hike": "yellow",
        "Walk": "yellow"
    }
    return colors.get(sport_type, "magenta")


def trend_arrow(trending_up: bool) -> str:
    """Arrow for a dashboard trend"""
    return "↑" if trending_up else "↓"


def trend_color(trending_up: bool) -> str:
    """Color for a dashboard trend"""
    return "green" if trending_up else "red"
