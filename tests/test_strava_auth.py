"""
Tests for sportfrei/auth/strava_auth.py

Tests cover:
1. Authorize URL construction and callback code extraction
2. Code exchange and token refresh against the token endpoint
3. Token expiry
4. TokenProvider caching and refresh-token rotation
"""

import time
import pytest
import requests
import responses
from responses import matchers
from unittest.mock import Mock
from urllib.parse import parse_qs, urlparse

from sportfrei.auth.strava_auth import (
    OAuthConfig,
    StravaAuth,
    StravaAuthError,
    TokenProvider,
    TokenResponse
)

TOKEN_URL = "https://www.strava.com/oauth/token"


@pytest.fixture
def auth():
    """Provides a StravaAuth for a test application"""
    return StravaAuth(OAuthConfig(client_id="12345", client_secret="s3cret"))


def _token_payload(**overrides):
    payload = {
        "token_type": "Bearer",
        "access_token": "new_access",
        "refresh_token": "new_refresh",
        "expires_in": 21600,
        "expires_at": int(time.time()) + 21600
    }
    payload.update(overrides)
    return payload


# =============================================================================
# AUTHORIZE URL & CALLBACK
# =============================================================================

@pytest.mark.unit
def test_build_authorize_url(auth):
    """Test the authorize URL carries client id, redirect and scopes"""
    url = auth.build_authorize_url()
    parsed = urlparse(url)
    params = parse_qs(parsed.query)

    assert url.startswith("https://www.strava.com/oauth/authorize?")
    assert params["client_id"] == ["12345"]
    assert params["response_type"] == ["code"]
    assert params["redirect_uri"] == ["http://localhost:42424"]
    assert params["scope"] == ["read,activity:read_all"]


@pytest.mark.unit
def test_extract_code_from_callback():
    """Test the code is read from the redirect query string"""
    assert StravaAuth.extract_code("/?state=&code=abc123&scope=read,activity:read_all") == "abc123"


@pytest.mark.unit
@pytest.mark.parametrize("path", ["/", "/?error=access_denied", "/?code="])
def test_extract_code_missing(path):
    """Test denied or empty callbacks yield no code"""
    assert StravaAuth.extract_code(path) is None


# =============================================================================
# TOKEN ENDPOINT
# =============================================================================

@pytest.mark.api
@responses.activate
def test_exchange_code_success(auth):
    """Test exchange_code() posts the grant and parses the tokens"""
    responses.add(
        responses.POST,
        TOKEN_URL,
        json=_token_payload(),
        status=200,
        match=[matchers.urlencoded_params_matcher({
            "client_id": "12345",
            "client_secret": "s3cret",
            "code": "abc123",
            "grant_type": "authorization_code"
        })]
    )

    token = auth.exchange_code("abc123")

    assert token.access_token == "new_access"
    assert token.refresh_token == "new_refresh"
    assert token.is_expired() is False


@pytest.mark.api
@responses.activate
def test_exchange_code_rejected(auth):
    """Test a 400 from the token endpoint raises StravaAuthError"""
    responses.add(responses.POST, TOKEN_URL, json={"message": "Bad Request"}, status=400)

    with pytest.raises(StravaAuthError) as exc_info:
        auth.exchange_code("bad")

    assert "Bad Request" in str(exc_info.value)


@pytest.mark.api
@responses.activate
def test_refresh_success(auth):
    """Test refresh() sends the refresh_token grant"""
    responses.add(
        responses.POST,
        TOKEN_URL,
        json=_token_payload(access_token="fresh", refresh_token="rotated"),
        status=200,
        match=[matchers.urlencoded_params_matcher({
            "client_id": "12345",
            "client_secret": "s3cret",
            "refresh_token": "old_refresh",
            "grant_type": "refresh_token"
        })]
    )

    token = auth.refresh("old_refresh")

    assert token.access_token == "fresh"
    assert token.refresh_token == "rotated"


@pytest.mark.api
@responses.activate
def test_refresh_keeps_old_refresh_token(auth):
    """Test the old refresh token is kept when none is returned"""
    payload = _token_payload()
    del payload["refresh_token"]
    responses.add(responses.POST, TOKEN_URL, json=payload, status=200)

    token = auth.refresh("old_refresh")

    assert token.refresh_token == "old_refresh"


@pytest.mark.unit
def test_refresh_without_token(auth):
    """Test refresh() refuses an empty refresh token"""
    with pytest.raises(StravaAuthError, match="No refresh token"):
        auth.refresh("")


@pytest.mark.api
@responses.activate
def test_refresh_missing_access_token(auth):
    """Test a 200 without access_token is an error"""
    responses.add(responses.POST, TOKEN_URL, json={"token_type": "Bearer"}, status=200)

    with pytest.raises(StravaAuthError, match="missing access_token"):
        auth.refresh("old_refresh")


@pytest.mark.api
@responses.activate
def test_refresh_network_error(auth):
    """Test transport failures become StravaAuthError"""
    responses.add(responses.POST, TOKEN_URL, body=requests.ConnectionError("offline"))

    with pytest.raises(StravaAuthError):
        auth.refresh("old_refresh")


# =============================================================================
# TOKEN RESPONSE
# =============================================================================

@pytest.mark.unit
def test_token_expiry_uses_expires_in():
    """Test expires_at is derived from expires_in when absent"""
    token = TokenResponse(access_token="x", expires_in=3600)

    assert token.expires_at == pytest.approx(time.time() + 3600, abs=5)
    assert token.is_expired() is False


@pytest.mark.unit
def test_token_expired_within_buffer():
    """Test a token inside the 5 minute buffer counts as expired"""
    token = TokenResponse(access_token="x", expires_at=time.time() + 60)

    assert token.is_expired() is True


@pytest.mark.unit
def test_token_keeps_explicit_expires_at():
    """Test an expires_at from the token endpoint is not recomputed"""
    token = TokenResponse(access_token="a", refresh_token="r", expires_at=1700000000)

    assert token.expires_at == 1700000000
    assert token.is_expired() is True


# =============================================================================
# TOKEN PROVIDER
# =============================================================================

def _mock_auth(*tokens):
    auth = Mock(spec=StravaAuth)
    auth.refresh.side_effect = list(tokens)
    return auth


@pytest.mark.unit
def test_provider_caches_valid_token():
    """Test a valid token is reused without refreshing"""
    auth = _mock_auth(TokenResponse(access_token="a1", refresh_token="r1"))
    provider = TokenProvider(auth, "r1")

    assert provider.get_access_token() == "a1"
    assert provider.get_access_token() == "a1"
    auth.refresh.assert_called_once_with("r1")


@pytest.mark.unit
def test_provider_refreshes_expired_token():
    """Test an expired token triggers another refresh"""
    auth = _mock_auth(
        TokenResponse(access_token="a1", refresh_token="r1", expires_at=time.time() - 10),
        TokenResponse(access_token="a2", refresh_token="r1")
    )
    provider = TokenProvider(auth, "r1")

    assert provider.get_access_token() == "a1"
    assert provider.get_access_token() == "a2"
    assert auth.refresh.call_count == 2


@pytest.mark.unit
def test_provider_reports_rotated_refresh_token():
    """Test a rotated refresh token is handed to on_refresh"""
    on_refresh = Mock()
    auth = _mock_auth(TokenResponse(access_token="a1", refresh_token="r2"))
    provider = TokenProvider(auth, "r1", on_refresh=on_refresh)

    provider.get_access_token()

    assert provider.refresh_token == "r2"
    on_refresh.assert_called_once_with("r2")


@pytest.mark.unit
def test_provider_skips_callback_when_unchanged():
    """Test on_refresh is not called when the refresh token is the same"""
    on_refresh = Mock()
    provider = TokenProvider(_mock_auth(TokenResponse(access_token="a1", refresh_token="r1")),
                             "r1", on_refresh=on_refresh)

    provider.get_access_token()

    on_refresh.assert_not_called()


@pytest.mark.unit
def test_provider_invalidate_forces_refresh():
    """Test invalidate() drops the cached token"""
    auth = _mock_auth(
        TokenResponse(access_token="a1", refresh_token="r1"),
        TokenResponse(access_token="a2", refresh_token="r1")
    )
    provider = TokenProvider(auth, "r1")
    provider.get_access_token()

    provider.invalidate()

    assert provider.get_access_token() == "a2"


@pytest.mark.unit
def test_provider_propagates_auth_error():
    """Test refresh failures reach the caller"""
    auth = Mock(spec=StravaAuth)
    auth.refresh.side_effect = StravaAuthError("Token refresh failed: Bad Request")
    provider = TokenProvider(auth, "r1")

    with pytest.raises(StravaAuthError):
        provider.get_access_token()
