"""
Strava API Client
Handles data retrieval from the Strava v3 API
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from sportfrei.auth.strava_auth import StravaAuthError, TokenProvider
from sportfrei.config import STRAVA_API_BASE, REQUEST_TIMEOUT
from sportfrei.models.models import Activity, Athlete, AthleteStats, DetailedActivity

logger = logging.getLogger(__name__)

SCOPE_HELP = (
    "This usually means your token lacks activity read permissions.\n"
    "\n"
    "To fix:\n"
    "1. Delete your SportFrei config file to re-run the setup\n"
    "2. On the Strava authorization page, keep the 'View data about your "
    "activities' (activity:read_all) box checked\n"
    "3. Restart SportFrei"
)


class StravaAPIError(Exception):
    """Raised when a Strava API call fails"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StravaScopeError(StravaAPIError):
    """Raised when the token is missing a required OAuth scope"""
    pass


class StravaClient:
    """Client for interacting with the Strava API"""

    BASE_URL = STRAVA_API_BASE

    def __init__(self, token_provider: TokenProvider, session: Optional[requests.Session] = None):
        """
        Initialize Strava client

        Args:
            token_provider: Supplies a valid bearer token for every request
            session: Optional requests session (a new one by default)
        """
        self.token_provider = token_provider
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "User-Agent": "SportFrei/1.0"
        })

    @staticmethod
    def _is_scope_error(status_code: int, text: str) -> bool:
        if "activity:read_permission" in text:
            return True
        return status_code in (401, 403) and "missing" in text

    def _get(self, path: str, params: Optional[Dict] = None) -> Any:
        """
        Perform an authenticated GET and decode the JSON body

        Raises:
            StravaScopeError: If the token lacks the needed scope
            StravaAPIError: On auth, transport, HTTP or decoding failure
        """
        try:
            token = self.token_provider.get_access_token()
        except StravaAuthError as e:
            raise StravaAPIError(f"Authentication failed: {e}") from e

        endpoint = f"{self.BASE_URL}{path}"
        try:
            response = self.session.get(
                endpoint,
                params=params,
                headers={"Authorization": f"Bearer {token}"},
                timeout=REQUEST_TIMEOUT
            )
        except requests.RequestException as e:
            logger.warning("Request to %s failed: %s", path, e)
            raise StravaAPIError(f"Request to {path} failed: {e}") from e

        if not response.ok:
            text = response.text or ""
            if self._is_scope_error(response.status_code, text):
                raise StravaScopeError(
                    f"API returned {response.status_code}. {SCOPE_HELP}",
                    status_code=response.status_code
                )
            if response.status_code == 401:
                # Force a refresh next time in case the cached token was revoked
                self.token_provider.invalidate()
            raise StravaAPIError(
                f"API error {response.status_code}: {text[:200]}",
                status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise StravaAPIError(f"Malformed JSON from {path}") from e

    def get_athlete(self) -> Athlete:
        """
        Get the authenticated athlete's profile

        Returns:
            Athlete
        """
        return Athlete.from_api_response(self._get("/athlete"))

    def get_athlete_stats(self, athlete_id: int) -> AthleteStats:
        """
        Get aggregate totals for an athlete

        Args:
            athlete_id: Strava athlete ID (must be the authenticated athlete)

        Returns:
            AthleteStats snapshot
        """
        return AthleteStats.from_api_response(self._get(f"/athletes/{athlete_id}/stats"))

    def get_activities(self, page: int, per_page: int) -> List[Activity]:
        """
        Get one page of the athlete's activities, newest first

        Args:
            page: Page number (1-indexed)
            per_page: Number of activities per page

        Returns:
            List of activities; shorter than per_page on the last page

        Raises:
            StravaScopeError: If the token cannot read activities
            StravaAPIError: On any other failure
        """
        data = self._get("/athlete/activities", params={"page": str(page), "per_page": str(per_page)})
        if not isinstance(data, list):
            raise StravaAPIError("Unexpected activities payload")
        activities = [Activity.from_api_response(a) for a in data]
        logger.info("Fetched page %d: %d activities", page, len(activities))
        return activities

    def get_activity(self, activity_id: int) -> DetailedActivity:
        """
        Get detailed data for a single activity

        Args:
            activity_id: Activity ID

        Returns:
            DetailedActivity including splits and laps
        """
        return DetailedActivity.from_api_response(self._get(f"/activities/{activity_id}"))
