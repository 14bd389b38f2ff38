"""
Configuration constants for SportFrei
Centralized settings for the Strava API, paging behavior, and the terminal loop
"""

# =============================================================================
# STRAVA API
# =============================================================================

STRAVA_API_BASE = "https://www.strava.com/api/v3"
STRAVA_AUTHORIZE_URL = "https://www.strava.com/oauth/authorize"
STRAVA_TOKEN_URL = "https://www.strava.com/oauth/token"

# Local callback server for the OAuth authorization code
REDIRECT_HOST = "127.0.0.1"
REDIRECT_PORT = 42424
REDIRECT_URI = f"http://localhost:{REDIRECT_PORT}"

# activity:read_all is required to list private activities
OAUTH_SCOPE = "read,activity:read_all"

# Seconds before an HTTP request to Strava is abandoned
REQUEST_TIMEOUT = 30

# Seconds to wait for the browser to hit the callback server
AUTH_CALLBACK_TIMEOUT = 300

# Refresh access tokens this many seconds before they expire
TOKEN_EXPIRY_BUFFER = 300

# =============================================================================
# ACTIVITY FEED
# =============================================================================

# Prefetch the next page once the selection is this close to the end
PREFETCH_MARGIN = 5

# Page size bounds (Strava caps per_page at 200)
DEFAULT_PAGE_SIZE = 30
MIN_PAGE_SIZE = 10
MAX_PAGE_SIZE = 200

# Header + footer rows that are not available for table rows
SCREEN_CHROME_ROWS = 6

# =============================================================================
# DASHBOARD METRICS
# =============================================================================

# Window for the "recent" distance and pace figures
RECENT_DAYS = 30

# Today minus this many days names the "previous" month label; roughly the previous month
PREVIOUS_MONTH_LOOKBACK_DAYS = 35

# =============================================================================
# TERMINAL LOOP
# =============================================================================

# Seconds to wait for a key press before redrawing
INPUT_POLL_SECONDS = 0.1

# Environment variable names
ENV_CLIENT_ID = "STRAVA_CLIENT_ID"
ENV_CLIENT_SECRET = "STRAVA_CLIENT_SECRET"
ENV_REFRESH_TOKEN = "STRAVA_REFRESH_TOKEN"
ENV_CONFIG_DIR = "SPORTFREI_CONFIG_DIR"
ENV_LOG_LEVEL = "SPORTFREI_LOG_LEVEL"

CONFIG_FILE_NAME = "config.json"
LOG_FILE_NAME = "sportfrei.log"
