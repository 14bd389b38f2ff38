"""
Feed Controller - Incremental activity feed with viewport-driven prefetch
"""

from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sportfrei.config import PREFETCH_MARGIN
from sportfrei.models.models import Activity, Athlete, AthleteStats
from sportfrei.services.activity_metrics import ActivityMetrics, DashboardSummary


class FeedController:
    """
    Owns the growing list of activities and the pagination cursor.

    The render loop queries it every tick. When should_prefetch() is true
    the caller calls begin_prefetch(), fetches page `next_page` itself, and
    hands the outcome back through apply_fetched_page() or
    apply_fetch_failure(). Only one fetch may be outstanding at a time.

    Usage:
        feed = FeedController()
        feed.initialize(athlete, stats)
        if feed.should_prefetch():
            feed.begin_prefetch()
            try:
                records = client.get_activities(feed.next_page, page_size)
            except StravaAPIError:
                feed.apply_fetch_failure()
            else:
                feed.apply_fetched_page(records, page_size)
    """

    def __init__(self, prefetch_margin: int = PREFETCH_MARGIN):
        self.prefetch_margin = prefetch_margin
        self._athlete: Optional[Athlete] = None
        self._stats: Optional[AthleteStats] = None
        self._activities: List[Activity] = []
        self._next_page = 1
        self._has_more = True
        self._is_loading = False
        self._selected_index = 0
        self._scroll_offset = 0

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def initialize(self, athlete: Optional[Athlete], stats: Optional[AthleteStats]) -> None:
        """
        Start a new session with a profile snapshot and an empty feed

        Args:
            athlete: Authenticated athlete profile
            stats: Aggregate stats snapshot, stored as-is
        """
        self._athlete = athlete
        self._stats = stats
        self._activities = []
        self._next_page = 1
        self._has_more = True
        self._is_loading = False
        self._selected_index = 0
        self._scroll_offset = 0

    # =========================================================================
    # READ-ONLY STATE
    # =========================================================================

    @property
    def athlete(self) -> Optional[Athlete]:
        return self._athlete

    @property
    def stats(self) -> Optional[AthleteStats]:
        return self._stats

    @property
    def activities(self) -> Tuple[Activity, ...]:
        return tuple(self._activities)

    @property
    def activity_count(self) -> int:
        return len(self._activities)

    @property
    def next_page(self) -> int:
        return self._next_page

    @property
    def has_more(self) -> bool:
        return self._has_more

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def selected_index(self) -> int:
        return self._selected_index

    @property
    def scroll_offset(self) -> int:
        return self._scroll_offset

    # =========================================================================
    # PAGINATION
    # =========================================================================

    def should_prefetch(self) -> bool:
        """
        True when the next page should be requested now

        Fires once the selection is within prefetch_margin rows of the end of
        the loaded list, so an empty feed always asks for its first page.
        """
        if self._is_loading or not self._has_more:
            return False
        threshold = max(0, len(self._activities) - self.prefetch_margin)
        return self._selected_index >= threshold

    def begin_prefetch(self) -> None:
        """
        Mark a fetch as in flight

        Raises:
            RuntimeError: If a fetch is already outstanding
        """
        if self._is_loading:
            raise RuntimeError("begin_prefetch called while a fetch is already in flight")
        self._is_loading = True

    def apply_fetched_page(self, records: Sequence[Activity], requested_page_size: int) -> None:
        """
        Append a successfully fetched page

        Args:
            records: Activities of page `next_page`, newest first
            requested_page_size: The per_page value that was sent for this page
        """
        self._activities.extend(records)
        self._next_page += 1
        # A short page means the end was reached; never re-open the feed
        if self._has_more:
            self._has_more = len(records) >= requested_page_size
        self._is_loading = False

    def apply_fetch_failure(self) -> None:
        """Clear the loading flag; the same page is requested on the next trigger"""
        self._is_loading = False

    # =========================================================================
    # SELECTION & SCROLL
    # =========================================================================

    def select_next(self) -> None:
        if not self._activities:
            return
        self._selected_index = min(self._selected_index + 1, len(self._activities) - 1)

    def select_previous(self) -> None:
        if not self._activities:
            return
        self._selected_index = max(self._selected_index - 1, 0)

    def scroll_left(self) -> None:
        if self._scroll_offset > 0:
            self._scroll_offset -= 1

    def scroll_right(self) -> None:
        self._scroll_offset += 1

    def selected_activity(self) -> Optional[Activity]:
        """The highlighted activity, or None if nothing is loaded"""
        if not self._activities:
            return None
        return self._activities[self._selected_index]

    # =========================================================================
    # DERIVED METRICS
    # =========================================================================

    def biggest_distance(self, now: Optional[datetime] = None) -> Tuple[float, float]:
        return ActivityMetrics.biggest_distance(self._activities, now)

    def best_pace(self, now: Optional[datetime] = None) -> Tuple[Optional[float], Optional[float]]:
        return ActivityMetrics.best_pace(self._activities, now)

    def monthly_count(self, now: Optional[datetime] = None) -> Tuple[int, int]:
        return ActivityMetrics.monthly_count(self._activities, now)

    def relative_performance(self, activity: Activity) -> Optional[float]:
        return ActivityMetrics.relative_performance(activity)

    def dashboard_summary(self, now: Optional[datetime] = None) -> DashboardSummary:
        return ActivityMetrics.summarize(self._activities, now)
