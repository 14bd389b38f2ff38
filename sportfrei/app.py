"""
SportFrei - Terminal dashboard for Strava
Entry point and the single-threaded draw / prefetch / input loop
"""

import logging
import os
import sys
from typing import Dict, Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.live import Live
from rich.prompt import Prompt

from sportfrei.api.strava_client import StravaAPIError, StravaClient
from sportfrei.auth.strava_auth import OAuthConfig, StravaAuth, StravaAuthError, TokenProvider
from sportfrei.config import (
    DEFAULT_PAGE_SIZE,
    ENV_LOG_LEVEL,
    INPUT_POLL_SECONDS,
    LOG_FILE_NAME,
    MAX_PAGE_SIZE,
    MIN_PAGE_SIZE,
    SCREEN_CHROME_ROWS
)
from sportfrei.models.models import DetailedActivity
from sportfrei.services.config_store import ConfigStore, StravaCredentials
from sportfrei.services.feed_controller import FeedController
from sportfrei.utils.keyboard import KeyReader
from sportfrei.views.main import View, build_screen

logger = logging.getLogger(__name__)


def page_size_for_height(terminal_height: int) -> int:
    """One page fills the screen: terminal rows minus header and footer, at least 10"""
    return min(max(terminal_height - SCREEN_CHROME_ROWS, MIN_PAGE_SIZE), MAX_PAGE_SIZE)


class DashboardApp:
    """
    Drives the feed controller from key presses and remote fetches.

    All state changes happen on the calling thread: each tick draws, runs at
    most one fetch, then handles at most one key.
    """

    def __init__(self, client: StravaClient, feed: FeedController, page_size: int = DEFAULT_PAGE_SIZE):
        self.client = client
        self.feed = feed
        self.page_size = page_size
        self.view = View.DASHBOARD
        self.status = ""
        self.running = True
        self.details: Dict[int, DetailedActivity] = {}

    # =========================================================================
    # FETCHING
    # =========================================================================

    def load_more_if_needed(self) -> bool:
        """
        Fetch the next page if the feed asks for it

        Returns:
            True if a fetch was attempted
        """
        if not self.feed.should_prefetch():
            return False

        page = self.feed.next_page
        self.feed.begin_prefetch()
        try:
            records = self.client.get_activities(page, self.page_size)
        except StravaAPIError as e:
            self.feed.apply_fetch_failure()
            self.status = f"Failed to load more activities: {e}"
            logger.warning("Failed to load page %d: %s", page, e)
        else:
            self.feed.apply_fetched_page(records, self.page_size)
            self.status = ""
        return True

    def load_selected_detail(self) -> None:
        """Fetch detailed data for the selected activity once per activity"""
        activity = self.feed.selected_activity()
        if activity is None or activity.activity_id in self.details:
            return
        try:
            self.details[activity.activity_id] = self.client.get_activity(activity.activity_id)
        except StravaAPIError as e:
            logger.warning("Failed to load activity %s: %s", activity.activity_id, e)
            self.status = f"Showing summary only: {e}"

    def current_detail(self) -> Optional[DetailedActivity]:
        """Cached detail for the selected activity, if it was fetched"""
        activity = self.feed.selected_activity()
        if activity is None:
            return None
        return self.details.get(activity.activity_id)

    # =========================================================================
    # INPUT
    # =========================================================================

    def switch_view(self, view: View) -> None:
        """Change the body view; notices belong to the view they were raised in"""
        if view != self.view:
            self.status = ""
        self.view = view

    def handle_key(self, key: str) -> None:
        """Translate a key press into a view change or feed mutation"""
        if key in ("q", "QUIT"):
            self.running = False
        elif key == "d":
            self.switch_view(View.DASHBOARD)
        elif key == "a":
            self.switch_view(View.ACTIVITIES)
        elif key in ("j", "DOWN", "k", "UP"):
            if key in ("j", "DOWN"):
                self.feed.select_next()
            else:
                self.feed.select_previous()
            if self.view == View.ACTIVITY_DETAIL:
                self.load_selected_detail()
        elif key in ("h", "LEFT"):
            if self.view == View.ACTIVITIES:
                self.feed.scroll_left()
        elif key in ("l", "RIGHT"):
            if self.view == View.ACTIVITIES:
                self.feed.scroll_right()
        elif key == "ENTER":
            if self.view == View.ACTIVITIES and self.feed.selected_activity() is not None:
                self.switch_view(View.ACTIVITY_DETAIL)
                self.load_selected_detail()
        elif key == "ESC":
            if self.view == View.ACTIVITY_DETAIL:
                self.switch_view(View.ACTIVITIES)

    # =========================================================================
    # LOOP
    # =========================================================================

    def render(self, height: int):
        detail = self.current_detail() if self.view == View.ACTIVITY_DETAIL else None
        return build_screen(self.feed, self.view, status=self.status, detail=detail, height=height)

    def tick(self, live: Live, keys: KeyReader, console: Console) -> None:
        """One cycle: draw, maybe fetch, handle one key"""
        live.update(self.render(console.size.height), refresh=True)

        if self.feed.should_prefetch():
            self.status = f"Loading page {self.feed.next_page}..."
            live.update(self.render(console.size.height), refresh=True)
            self.load_more_if_needed()
            live.update(self.render(console.size.height), refresh=True)

        key = keys.read_key(INPUT_POLL_SECONDS)
        if key is not None:
            self.handle_key(key)

    def run(self, console: Console) -> None:
        """Run until the user quits"""
        with KeyReader() as keys, Live(
            self.render(console.size.height),
            console=console,
            auto_refresh=False,
            screen=True,
            vertical_overflow="crop",
        ) as live:
            while self.running:
                self.tick(live, keys, console)


# =============================================================================
# SETUP
# =============================================================================

def configure_logging(store: ConfigStore) -> None:
    """Send log records to a file; the terminal belongs to the UI"""
    store.config_dir.mkdir(parents=True, exist_ok=True)
    level = os.getenv(ENV_LOG_LEVEL, "INFO").upper()
    logging.basicConfig(
        filename=str(store.config_dir / LOG_FILE_NAME),
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


def run_setup(console: Console, store: ConfigStore, existing: Optional[StravaCredentials]) -> StravaCredentials:
    """
    Ask for the API application credentials and walk through OAuth

    Raises:
        StravaAuthError: If authorization times out or the exchange fails
    """
    client_id = existing.client_id if existing else ""
    client_secret = existing.client_secret if existing else ""

    console.print("\n[bold]=== SportFrei Setup ===[/bold]\n")
    if not client_id:
        client_id = Prompt.ask("Strava Client ID").strip()
    if not client_secret:
        client_secret = Prompt.ask("Strava Client Secret", password=True).strip()

    auth = StravaAuth(OAuthConfig(client_id=client_id, client_secret=client_secret))
    console.print("Please open the following URL in your browser and authorize the application:\n")
    console.print(auth.build_authorize_url(), soft_wrap=True)
    console.print("\nWaiting for authorization...")

    code = auth.wait_for_authorization_code()
    console.print("Authorization received! Exchanging for token...")
    token = auth.exchange_code(code)

    credentials = StravaCredentials(client_id, client_secret, token.refresh_token or "")
    store.save(credentials)
    console.print("Token saved! Starting SportFrei...\n")
    return credentials


def main() -> int:
    load_dotenv()
    console = Console()
    store = ConfigStore()
    configure_logging(store)

    credentials = store.load()
    try:
        if credentials is None or not credentials.is_complete():
            credentials = run_setup(console, store, credentials)

        auth = StravaAuth(OAuthConfig(client_id=credentials.client_id,
                                      client_secret=credentials.client_secret))
        provider = TokenProvider(auth, credentials.refresh_token, on_refresh=store.update_refresh_token)
        client = StravaClient(provider)

        console.print("Loading athlete data...")
        athlete = client.get_athlete()
        stats = client.get_athlete_stats(athlete.athlete_id)
    except (StravaAuthError, StravaAPIError) as e:
        logger.error("Startup failed: %s", e)
        console.print(f"[red]Error:[/red] {e}")
        return 1
    except KeyboardInterrupt:
        return 130

    feed = FeedController()
    feed.initialize(athlete, stats)
    app = DashboardApp(client, feed, page_size_for_height(console.size.height))
    logger.info("Starting UI with page size %d", app.page_size)
    try:
        app.run(console)
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
