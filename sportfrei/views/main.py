"""
Terminal views - Dashboard, activity list and activity detail rendered with rich
"""

from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional, Tuple

from rich.console import Group
from rich.layout import Layout
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from sportfrei.models.models import Activity, ActivityTotals, DetailedActivity
from sportfrei.services.feed_controller import FeedController
from sportfrei.utils.helpers import (
    format_duration,
    format_hours_minutes,
    format_km,
    format_optional,
    format_pace,
    format_row_date,
    get_sport_color,
    pace_from_distance,
    trend_arrow,
    trend_color
)


class View(Enum):
    """Which screen the body of the UI shows"""
    DASHBOARD = "dashboard"
    ACTIVITIES = "activities"
    ACTIVITY_DETAIL = "activity_detail"


VIEW_TITLES = {
    View.DASHBOARD: "SportFrei - Dashboard",
    View.ACTIVITIES: "SportFrei - Activities",
    View.ACTIVITY_DETAIL: "SportFrei - Activity Details",
}

FOOTER_NAV = "[D]ashboard | [A]ctivities | [Q]uit"

# (header, width, style, cell renderer)
Column = Tuple[str, int, Optional[str], Callable[[FeedController, Activity], str]]

SCROLLABLE_COLUMNS: List[Column] = [
    ("Name", 25, None, lambda feed, a: a.name[:25]),
    ("Distance", 8, "cyan", lambda feed, a: format_km(a.distance)),
    ("Elev", 7, None, lambda feed, a: f"{a.total_elevation_gain:.0f}"),
    ("Duration", 8, "green", lambda feed, a: format_duration(a.moving_time)),
    ("Pace", 7, "yellow", lambda feed, a: pace_from_distance(a.distance, a.moving_time)),
    ("HR", 5, "red", lambda feed, a: format_optional(a.average_heartrate)),
    ("Cal", 5, None, lambda feed, a: format_optional(a.calories)),
    ("RelPerf", 7, "magenta", lambda feed, a: format_optional(feed.relative_performance(a))),
]


def render_header(view: View) -> Panel:
    return Panel(Text(VIEW_TITLES[view], style="bold"), height=3)


def render_footer(status: str = "") -> Panel:
    # Text title so the [D] style brackets are not read as markup
    return Panel(Text(status, style="yellow"), title=Text(FOOTER_NAV), title_align="left", height=3)


def _totals_line(label: str, totals: ActivityTotals) -> str:
    return f"{label}: {totals.count} · {format_km(totals.distance)} km · {format_hours_minutes(totals.moving_time)}"


def render_dashboard(feed: FeedController, now: Optional[datetime] = None) -> Layout:
    """
    Three metric panels over the loaded activities plus the stats snapshot

    Args:
        feed: Feed controller to read from
        now: Reference time for the recent and monthly figures
    """
    layout = Layout(name="dashboard")
    if feed.athlete is None:
        layout.update(Panel(Text("No data available", style="yellow"), title="Dashboard"))
        return layout

    summary = feed.dashboard_summary(now)
    name = feed.athlete.firstname or "Athlete"

    distance_up = summary.distance_trending_up
    distance = Text(
        f"Biggest Distance\n\n{summary.biggest_distance_km:.1f} km {trend_arrow(distance_up)}\n"
        f"(last 30 days: {summary.recent_distance_km:.1f} km)",
        style=trend_color(distance_up)
    )

    pace_up = summary.pace_trending_up
    pace = Text(
        f"Best Pace\n\n{format_pace(summary.recent_best_pace)} /km {trend_arrow(pace_up)}\n"
        f"(vs {format_pace(summary.best_pace)})",
        style=trend_color(pace_up)
    )

    count_up = summary.count_trending_up
    count = Text(
        f"This Month\n\n{summary.this_month_count} {trend_arrow(count_up)}\n"
        f"(vs {summary.previous_month_count} last month)",
        style=trend_color(count_up)
    )

    cards = [
        Layout(Panel(distance, title=f"Welcome, {name}!", border_style="cyan")),
        Layout(Panel(pace, title="Best Pace", border_style="green")),
        Layout(Panel(count, title="Activities this month", border_style="yellow")),
    ]

    stats = feed.stats
    if stats is None:
        layout.split_row(*cards)
        return layout

    totals = Text("\n".join([
        _totals_line("Recent runs", stats.recent_run_totals),
        _totals_line("YTD runs", stats.ytd_run_totals),
        _totals_line("All runs", stats.all_run_totals),
        _totals_line("Recent rides", stats.recent_ride_totals),
        _totals_line("YTD rides", stats.ytd_ride_totals),
        _totals_line("All rides", stats.all_ride_totals),
    ]))
    layout.split_column(
        Layout(name="cards", ratio=1),
        Layout(Panel(totals, title="Totals"), name="totals", size=8),
    )
    layout["cards"].split_row(*cards)
    return layout


def visible_window(selected: int, total: int, rows: int) -> Tuple[int, int]:
    """Slice of rows to draw so the selected row stays on screen"""
    rows = max(1, rows)
    start = max(0, selected - rows + 1)
    return start, min(total, start + rows)


def render_activities(feed: FeedController, visible_rows: int = 50) -> Panel:
    """
    Activity table; scroll_offset hides leading columns after Date

    Args:
        feed: Feed controller to read from
        visible_rows: Number of table rows that fit on screen
    """
    if feed.activity_count == 0:
        message = "Loading activities..." if feed.is_loading else "No activities found"
        return Panel(Text(message), title="Activities")

    offset = min(feed.scroll_offset, len(SCROLLABLE_COLUMNS) - 1)
    columns = SCROLLABLE_COLUMNS[offset:]

    loading = " - loading more..." if feed.is_loading else ""
    table = Table(expand=False, box=None, header_style="bold white on black")
    table.add_column("Date", width=12, no_wrap=True)
    for header, width, style, _ in columns:
        table.add_column(header, width=width, style=style, no_wrap=True)

    activities = feed.activities
    start, end = visible_window(feed.selected_index, len(activities), visible_rows)
    for index in range(start, end):
        activity = activities[index]
        cells = [format_row_date(activity.start_date_local)]
        for header, _, _, render in columns:
            cell = render(feed, activity)
            if header == "Name":
                cell = Text(cell, style=get_sport_color(activity.sport_type))
            cells.append(cell)
        row_style = "white on grey23" if index == feed.selected_index else None
        table.add_row(*cells, style=row_style)

    title = f"Activities ({feed.activity_count} total{loading}) - h/l scroll, j/k nav"
    return Panel(table, title=title)


def render_activity_detail(activity: Optional[Activity], detail: Optional[DetailedActivity] = None) -> Panel:
    """
    Summary of the selected activity, with metric splits when available

    Args:
        activity: Selected activity, or None
        detail: Detailed activity fetched for it, if any
    """
    if activity is None:
        return Panel(Text("No activity selected"), title="Details (Esc to go back)")

    summary = Text(
        f"{activity.name}\n\n"
        f"Type: {activity.activity_type}\n"
        f"Distance: {format_km(activity.distance, 2)} km\n"
        f"Moving Time: {format_hours_minutes(activity.moving_time)}\n"
        f"Elevation Gain: {activity.total_elevation_gain:.0f} m\n"
        f"Average Speed: {(activity.average_speed or 0.0) * 3.6:.2f} km/h"
    )

    if detail is None or not detail.splits_metric:
        return Panel(summary, title="Details (Esc to go back)")

    splits = Table(title="Splits", box=None, header_style="bold")
    splits.add_column("Km", justify="right")
    splits.add_column("Pace", style="yellow")
    splits.add_column("Elev", justify="right")
    for split in detail.splits_metric:
        splits.add_row(
            str(split.split),
            pace_from_distance(split.distance, split.moving_time),
            f"{split.elevation_difference:+.0f}"
        )
    return Panel(Group(summary, Text(""), splits), title="Details (Esc to go back)")


def build_screen(feed: FeedController, view: View, status: str = "",
                 detail: Optional[DetailedActivity] = None,
                 height: int = 40, now: Optional[datetime] = None) -> Layout:
    """
    Compose header, body and footer for the current view

    Args:
        feed: Feed controller to read from
        view: Active view
        status: Transient notice for the footer (errors, loading)
        detail: Detailed activity for the detail view
        height: Terminal height, used to size the activity table
        now: Reference time for dashboard metrics
    """
    if view == View.DASHBOARD:
        body = render_dashboard(feed, now)
    elif view == View.ACTIVITIES:
        # Header, footer, table border and column header
        body = render_activities(feed, visible_rows=height - 9)
    else:
        body = render_activity_detail(feed.selected_activity(), detail)

    screen = Layout(name="root")
    screen.split_column(
        Layout(render_header(view), name="header", size=3),
        Layout(body, name="body"),
        Layout(render_footer(status), name="footer", size=3),
    )
    return screen
