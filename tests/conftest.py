"""
Shared test fixtures for SportFrei test suite

This module provides reusable fixtures for testing all components of the SportFrei application.
Fixtures are organized by category: data models, API mocking, file management, and utilities.
"""

import pytest
from datetime import datetime, timezone
from typing import Callable, Dict, List
from unittest.mock import Mock

from sportfrei.auth.strava_auth import TokenProvider
from sportfrei.api.strava_client import StravaClient
from sportfrei.models.models import Activity, ActivityTotals, Athlete, AthleteStats
from sportfrei.services.config_store import ConfigStore
from sportfrei.services.feed_controller import FeedController


# Fixed reference time for every time-dependent assertion
NOW = datetime(2024, 3, 20, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# DATA MODEL FIXTURES - Sample data for testing
# =============================================================================

@pytest.fixture
def now() -> datetime:
    """Reference time used by metric tests (2024-03-20 12:00 UTC)"""
    return NOW


@pytest.fixture
def sample_athlete() -> Athlete:
    """
    Provides a sample Athlete object for testing.

    Returns:
        Athlete: A complete athlete profile
    """
    return Athlete(
        athlete_id=12345,
        firstname="John",
        lastname="Doe",
        username="johndoe",
        city="Berlin",
        country="Germany",
        profile="https://example.com/avatar.jpg"
    )


@pytest.fixture
def sample_stats() -> AthleteStats:
    """
    Provides a sample AthleteStats snapshot.

    Returns:
        AthleteStats: Totals for runs and rides
    """
    return AthleteStats(
        biggest_ride_distance=120000.0,
        biggest_climb_elevation_gain=850.0,
        recent_run_totals=ActivityTotals(count=8, distance=62000.0, moving_time=21000),
        recent_ride_totals=ActivityTotals(count=2, distance=90000.0, moving_time=12000),
        ytd_run_totals=ActivityTotals(count=30, distance=250000.0, moving_time=90000),
        ytd_ride_totals=ActivityTotals(count=5, distance=300000.0, moving_time=40000),
        all_run_totals=ActivityTotals(count=400, distance=3500000.0, moving_time=1200000),
        all_ride_totals=ActivityTotals(count=80, distance=4000000.0, moving_time=600000)
    )


@pytest.fixture
def activity_factory() -> Callable[..., Activity]:
    """
    Provides a factory building Activity objects with sensible defaults.

    Returns:
        callable: make(activity_id, **overrides) -> Activity

    Usage:
        def test_something(activity_factory):
            run = activity_factory(1, distance=10000.0, moving_time=3000)
    """
    def make(activity_id: int, **overrides) -> Activity:
        fields = {
            "activity_id": activity_id,
            "name": f"Activity {activity_id}",
            "activity_type": "Run",
            "sport_type": "Run",
            "start_date_local": NOW,
            "distance": 5000.0,
            "moving_time": 1500,
            "elapsed_time": 1600,
            "total_elevation_gain": 25.0,
        }
        fields.update(overrides)
        return Activity(**fields)

    return make


@pytest.fixture
def page_factory(activity_factory) -> Callable[[int, int], List[Activity]]:
    """
    Provides a factory for a page of activities with consecutive ids.

    Returns:
        callable: make(count, first_id=1) -> List[Activity]
    """
    def make(count: int, first_id: int = 1) -> List[Activity]:
        return [activity_factory(first_id + i) for i in range(count)]

    return make


@pytest.fixture
def feed(sample_athlete, sample_stats) -> FeedController:
    """Provides an initialized, empty FeedController"""
    controller = FeedController()
    controller.initialize(sample_athlete, sample_stats)
    return controller


# =============================================================================
# API MOCKING FIXTURES - Mock Strava API responses
# =============================================================================

@pytest.fixture
def mock_token_provider():
    """
    Provides a mock TokenProvider that always returns the same token.

    Returns:
        Mock: A TokenProvider stand-in
    """
    provider = Mock(spec=TokenProvider)
    provider.get_access_token.return_value = "test_access_token"
    return provider


@pytest.fixture
def strava_client(mock_token_provider) -> StravaClient:
    """Provides a StravaClient backed by the mock token provider"""
    return StravaClient(mock_token_provider)


@pytest.fixture
def mock_strava_client():
    """
    Provides a mock StravaClient for testing the UI loop without HTTP.

    Returns:
        Mock: A mocked StravaClient
    """
    return Mock(spec=StravaClient)


@pytest.fixture
def mock_api_athlete_response() -> Dict:
    """
    Provides a mock API response for the /athlete endpoint.

    Returns:
        Dict: Simulated Strava athlete response
    """
    return {
        "id": 12345,
        "username": "johndoe",
        "firstname": "John",
        "lastname": "Doe",
        "city": "Berlin",
        "country": "Germany",
        "profile": "https://example.com/avatar.jpg",
        "profile_medium": "https://example.com/avatar_medium.jpg"
    }


@pytest.fixture
def mock_api_stats_response() -> Dict:
    """
    Provides a mock API response for the /athletes/{id}/stats endpoint.

    Returns:
        Dict: Simulated Strava stats response
    """
    totals = {"count": 10, "distance": 50000.0, "moving_time": 18000,
              "elapsed_time": 19000, "elevation_gain": 300.0}
    return {
        "biggest_ride_distance": 120000.0,
        "biggest_climb_elevation_gain": 850.0,
        "recent_run_totals": totals,
        "recent_ride_totals": totals,
        "ytd_run_totals": totals,
        "ytd_ride_totals": totals,
        "all_run_totals": dict(totals, count=400),
        "all_ride_totals": totals
    }


@pytest.fixture
def mock_api_activity_response() -> Dict:
    """
    Provides a mock SummaryActivity object from /athlete/activities.

    Returns:
        Dict: Simulated Strava activity
    """
    return {
        "id": 1001,
        "name": "Morning Run",
        "type": "Run",
        "sport_type": "Run",
        "start_date": "2024-03-18T06:30:00Z",
        "start_date_local": "2024-03-18T07:30:00Z",
        "timezone": "(GMT+01:00) Europe/Berlin",
        "distance": 10000.0,
        "moving_time": 3000,
        "elapsed_time": 3100,
        "total_elevation_gain": 45.0,
        "average_speed": 3.333,
        "max_speed": 4.5,
        "average_heartrate": 150.0,
        "max_heartrate": 172.0,
        "kudos_count": 3,
        "commute": False,
        "manual": False,
        "private": False
    }


@pytest.fixture
def mock_api_detailed_activity_response(mock_api_activity_response) -> Dict:
    """
    Provides a mock DetailedActivity from /activities/{id}.

    Returns:
        Dict: Activity with splits and laps
    """
    return dict(
        mock_api_activity_response,
        calories=650.0,
        description="Easy loop",
        splits_metric=[
            {"split": 1, "distance": 1000.0, "elapsed_time": 305, "moving_time": 300,
             "elevation_difference": 2.0, "average_speed": 3.33, "pace_zone": 2},
            {"split": 2, "distance": 1000.0, "elapsed_time": 295, "moving_time": 290,
             "elevation_difference": -1.0, "average_speed": 3.45, "pace_zone": 2}
        ],
        laps=[
            {"id": 77, "name": "Lap 1", "lap_index": 1, "distance": 10000.0,
             "elapsed_time": 3100, "moving_time": 3000, "average_speed": 3.333,
             "max_speed": 4.5, "average_heartrate": 150.0, "max_heartrate": 172.0}
        ]
    )


# =============================================================================
# FILE SYSTEM FIXTURES - Temporary directories for testing
# =============================================================================

@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Provides a temporary config directory (not yet created on disk).

    Args:
        tmp_path: Built-in pytest fixture providing temporary directory

    Returns:
        Path: Path to the config directory
    """
    return tmp_path / "sportfrei"


@pytest.fixture
def config_store(temp_config_dir) -> ConfigStore:
    """Provides a ConfigStore writing to an isolated temporary directory"""
    return ConfigStore(str(temp_config_dir))


# =============================================================================
# CONFIGURATION FIXTURES - Test environment setup
# =============================================================================

@pytest.fixture(autouse=True)
def reset_environment_variables(monkeypatch):
    """
    Automatically clears SportFrei environment variables for each test.
    This prevents a developer's real credentials from leaking into tests.

    Note:
        This fixture runs automatically for every test (autouse=True)
    """
    for name in ("STRAVA_CLIENT_ID", "STRAVA_CLIENT_SECRET", "STRAVA_REFRESH_TOKEN",
                 "SPORTFREI_CONFIG_DIR", "SPORTFREI_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


# =============================================================================
# MARKER FIXTURES - Pytest markers for test organization
# =============================================================================

# Use these markers in tests:
# @pytest.mark.unit - Fast unit tests with no dependencies
# @pytest.mark.integration - Tests that exercise several components together
# @pytest.mark.api - Tests that interact with Strava API (mocked)
