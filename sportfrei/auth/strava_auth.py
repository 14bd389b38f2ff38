"""
Strava OAuth Authentication Module
Implements the authorization-code flow for a terminal application.

The flow mirrors what Strava documents for installed apps:
1. Open the authorize URL in a browser
2. Strava redirects to a local callback server with ?code=...
3. Exchange the code for an access/refresh token pair
4. Refresh the short-lived access token as needed
"""

import logging
import time
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Callable, Optional
from urllib.parse import urlencode, urlparse, parse_qs

import requests

from sportfrei.config import (
    AUTH_CALLBACK_TIMEOUT,
    OAUTH_SCOPE,
    REDIRECT_HOST,
    REDIRECT_PORT,
    REDIRECT_URI,
    REQUEST_TIMEOUT,
    STRAVA_AUTHORIZE_URL,
    STRAVA_TOKEN_URL,
    TOKEN_EXPIRY_BUFFER
)

logger = logging.getLogger(__name__)


@dataclass
class OAuthConfig:
    """OAuth configuration for a Strava API application"""
    client_id: str
    client_secret: str
    authorize_url: str = STRAVA_AUTHORIZE_URL
    token_url: str = STRAVA_TOKEN_URL
    redirect_uri: str = REDIRECT_URI
    scope: str = OAUTH_SCOPE


@dataclass
class TokenResponse:
    """Token response from the Strava token endpoint"""
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "Bearer"
    expires_in: int = 21600  # Strava default: 6 hours
    expires_at: float = 0  # Unix timestamp when token expires

    def __post_init__(self):
        if self.expires_at == 0:
            self.expires_at = time.time() + self.expires_in

    def is_expired(self) -> bool:
        """Check if token is expired (with 5 min buffer)"""
        return time.time() >= (self.expires_at - TOKEN_EXPIRY_BUFFER)


class StravaAuthError(Exception):
    """Exception raised for authentication errors"""
    pass


class _CallbackHandler(BaseHTTPRequestHandler):
    """Receives the browser redirect and records the authorization code"""

    def do_GET(self):
        code = StravaAuth.extract_code(self.path)
        self.server.authorization_code = code
        if code:
            status = 200
            body = "<html><body><h1>Authorized!</h1><p>You can close this window and return to the terminal.</p></body></html>"
        else:
            status = 400
            body = "<html><body><h1>Error</h1><p>No authorization code received.</p></body></html>"
        self.send_response(status)
        self.send_header("Content-Type", "text/html")
        self.end_headers()
        self.wfile.write(body.encode("utf-8"))

    def log_message(self, format, *args):
        logger.debug("Callback server: " + format, *args)


class StravaAuth:
    """
    Handles Strava authentication via the OAuth authorization-code flow.

    Usage:
        auth = StravaAuth(OAuthConfig(client_id="123", client_secret="..."))
        print(auth.build_authorize_url())
        code = auth.wait_for_authorization_code()
        token = auth.exchange_code(code)

        # Later, refresh the token:
        new_token = auth.refresh(token.refresh_token)
    """

    def __init__(self, config: OAuthConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def build_authorize_url(self) -> str:
        """Build the URL the user opens in a browser to grant access"""
        params = {
            "client_id": self.config.client_id,
            "response_type": "code",
            "redirect_uri": self.config.redirect_uri,
            "approval_prompt": "auto",
            "scope": self.config.scope,
        }
        return f"{self.config.authorize_url}?{urlencode(params)}"

    @staticmethod
    def extract_code(path: str) -> Optional[str]:
        """
        Pull the authorization code out of a callback request path.

        Args:
            path: Request path such as "/?state=&code=abc&scope=read"

        Returns:
            The code, or None if the user denied access or it is missing
        """
        query_params = parse_qs(urlparse(path).query)
        codes = query_params.get("code")
        if not codes or not codes[0]:
            return None
        return codes[0]

    def wait_for_authorization_code(self, timeout: int = AUTH_CALLBACK_TIMEOUT,
                                    host: str = REDIRECT_HOST, port: int = REDIRECT_PORT) -> str:
        """
        Run a local HTTP server until Strava redirects back with a code.

        Returns:
            Authorization code

        Raises:
            StravaAuthError: If no code arrives before the timeout
        """
        server = HTTPServer((host, port), _CallbackHandler)
        server.authorization_code = None
        server.timeout = 1
        deadline = time.monotonic() + timeout
        try:
            while server.authorization_code is None and time.monotonic() < deadline:
                server.handle_request()
        finally:
            server.server_close()

        if not server.authorization_code:
            raise StravaAuthError("Authorization timed out")
        return server.authorization_code

    def _post_token(self, payload: dict, action: str) -> dict:
        try:
            response = self.session.post(self.config.token_url, data=payload, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise StravaAuthError(f"{action} failed: {e}") from e

        if response.status_code != 200:
            try:
                error_data = response.json()
                error_msg = error_data.get("message") or error_data.get("error")
            except ValueError:
                error_msg = None
            raise StravaAuthError(f"{action} failed: {error_msg or f'HTTP {response.status_code}'}")

        try:
            data = response.json()
        except ValueError as e:
            raise StravaAuthError(f"{action} failed: malformed response") from e

        if not data.get("access_token"):
            raise StravaAuthError("Token response missing access_token")
        return data

    def exchange_code(self, code: str) -> TokenResponse:
        """
        Exchange authorization code for an access token.

        Returns:
            TokenResponse with access_token and refresh_token

        Raises:
            StravaAuthError: If the exchange fails
        """
        data = self._post_token({
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "code": code,
            "grant_type": "authorization_code",
        }, "Token exchange")
        logger.info("Exchanged authorization code for token")
        return self._token_from_response(data)

    def refresh(self, refresh_token: str) -> TokenResponse:
        """
        Refresh the access token using a refresh token.

        Args:
            refresh_token: Long-lived refresh token

        Returns:
            New TokenResponse with fresh access_token

        Raises:
            StravaAuthError: If refresh fails or no refresh_token available
        """
        if not refresh_token:
            raise StravaAuthError("No refresh token available")

        data = self._post_token({
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
        }, "Token refresh")
        token = self._token_from_response(data)
        if not token.refresh_token:
            token.refresh_token = refresh_token  # Keep old if not returned
        logger.info("Refreshed Strava access token")
        return token

    @staticmethod
    def _token_from_response(data: dict) -> TokenResponse:
        return TokenResponse(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            token_type=data.get("token_type", "Bearer"),
            expires_in=data.get("expires_in", 21600),
            expires_at=data.get("expires_at", 0),
        )


class TokenProvider:
    """
    Produces a currently-valid bearer token, refreshing when needed.

    Strava may rotate the refresh token on any refresh; the new value is
    handed to on_refresh so it can be persisted.
    """

    def __init__(self, auth: StravaAuth, refresh_token: str,
                 on_refresh: Optional[Callable[[str], None]] = None):
        self.auth = auth
        self.refresh_token = refresh_token
        self.on_refresh = on_refresh
        self._token: Optional[TokenResponse] = None

    def get_access_token(self) -> str:
        """
        Return a cached access token, refreshing it when expired.

        Raises:
            StravaAuthError: If the refresh fails
        """
        if self._token is not None and not self._token.is_expired():
            return self._token.access_token

        token = self.auth.refresh(self.refresh_token)
        self._token = token
        if token.refresh_token and token.refresh_token != self.refresh_token:
            self.refresh_token = token.refresh_token
            if self.on_refresh:
                self.on_refresh(token.refresh_token)
        return token.access_token

    def invalidate(self) -> None:
        """Drop the cached token so the next call refreshes"""
        self._token = None
