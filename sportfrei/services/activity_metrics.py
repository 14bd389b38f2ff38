"""
Activity Metrics - Dashboard figures computed over the loaded activities
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Tuple

from sportfrei.config import RECENT_DAYS, PREVIOUS_MONTH_LOOKBACK_DAYS
from sportfrei.models.models import Activity


@dataclass
class DashboardSummary:
    """Values and trend flags shown on the dashboard panels"""
    biggest_distance_km: float
    recent_distance_km: float
    best_pace: Optional[float]  # seconds per km
    recent_best_pace: Optional[float]
    this_month_count: int
    previous_month_count: int

    @property
    def distance_trending_up(self) -> bool:
        return self.recent_distance_km > 0

    @property
    def pace_trending_up(self) -> bool:
        if not self.recent_best_pace or not self.best_pace:
            return False
        return self.recent_best_pace < self.best_pace

    @property
    def count_trending_up(self) -> bool:
        return self.this_month_count > self.previous_month_count


class ActivityMetrics:
    """
    Pure computations over an in-memory list of activities.

    These only see what has been paged in so far; true all-time totals come
    from the AthleteStats snapshot instead.
    """

    @staticmethod
    def _now(now: Optional[datetime]) -> datetime:
        return now if now is not None else datetime.now(timezone.utc)

    @staticmethod
    def recent(activities: Iterable[Activity], now: Optional[datetime] = None) -> List[Activity]:
        """
        Activities that started within the last RECENT_DAYS days

        Args:
            activities: Activities to filter
            now: Reference time (defaults to current UTC time)

        Returns:
            Activities whose local start time is after now - RECENT_DAYS
        """
        cutoff = ActivityMetrics._now(now) - timedelta(days=RECENT_DAYS)
        return [a for a in activities if a.start_date_local > cutoff]

    @staticmethod
    def pace_seconds_per_km(activity: Activity) -> Optional[float]:
        """Moving time per kilometer, or None when no distance was recorded"""
        if activity.distance <= 0:
            return None
        return activity.moving_time / (activity.distance / 1000.0)

    @staticmethod
    def biggest_distance(activities: List[Activity], now: Optional[datetime] = None) -> Tuple[float, float]:
        """
        Longest single activity and recent total distance

        Args:
            activities: Loaded activities
            now: Reference time for the recent window

        Returns:
            (longest distance in km, sum of recent distances in km)
        """
        all_time = max((a.distance / 1000.0 for a in activities), default=0.0)
        recent = sum(a.distance / 1000.0 for a in ActivityMetrics.recent(activities, now))
        return all_time, recent

    @staticmethod
    def _best_run_pace(activities: Iterable[Activity]) -> Optional[float]:
        paces = [
            ActivityMetrics.pace_seconds_per_km(a)
            for a in activities
            if a.is_run and a.distance > 0
        ]
        return min(paces) if paces else None

    @staticmethod
    def best_pace(activities: List[Activity], now: Optional[datetime] = None) -> Tuple[Optional[float], Optional[float]]:
        """
        Fastest run pace overall and within the recent window

        Returns:
            (best pace, recent best pace) in seconds per km; None means no pace
        """
        all_time = ActivityMetrics._best_run_pace(activities)
        recent = ActivityMetrics._best_run_pace(ActivityMetrics.recent(activities, now))
        return all_time, recent

    @staticmethod
    def monthly_count(activities: List[Activity], now: Optional[datetime] = None) -> Tuple[int, int]:
        """
        Number of activities this calendar month and the month before

        Months are matched on the "YYYY-MM" label of the local start time.

        Returns:
            (this month count, previous month count)
        """
        now = ActivityMetrics._now(now)
        this_month = now.strftime("%Y-%m")
        previous_month = (now - timedelta(days=PREVIOUS_MONTH_LOOKBACK_DAYS)).strftime("%Y-%m")

        labels = [a.start_date_local.strftime("%Y-%m") for a in activities]
        return labels.count(this_month), labels.count(previous_month)

    @staticmethod
    def relative_performance(activity: Activity) -> Optional[float]:
        """
        Seconds of effort per heartbeat: (distance / avg speed) / avg HR

        Only defined when both average speed and heart rate were recorded
        and the average speed is positive.
        """
        if activity.average_speed is None or activity.average_heartrate is None:
            return None
        if activity.average_speed <= 0 or activity.average_heartrate == 0:
            return None
        return (activity.distance / activity.average_speed) / activity.average_heartrate

    @staticmethod
    def summarize(activities: List[Activity], now: Optional[datetime] = None) -> DashboardSummary:
        """Compute every dashboard figure against a single reference time"""
        now = ActivityMetrics._now(now)
        biggest, recent_distance = ActivityMetrics.biggest_distance(activities, now)
        best, recent_best = ActivityMetrics.best_pace(activities, now)
        this_month, previous_month = ActivityMetrics.monthly_count(activities, now)
        return DashboardSummary(
            biggest_distance_km=biggest,
            recent_distance_km=recent_distance,
            best_pace=best,
            recent_best_pace=recent_best,
            this_month_count=this_month,
            previous_month_count=previous_month
        )
