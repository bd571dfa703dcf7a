"""Google OAuth for the Docs API.

Credentials are obtained once with the installed-app flow (a local
redirect server plus the browser consent screen) and stored as an
authorized-user JSON file at ``config.google_credentials_path``.  Later
runs load that file and refresh the access token when it has expired.
"""

from __future__ import annotations

from pathlib import Path

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from notion2docs.config import Notion2DocsConfig
from notion2docs.errors import Notion2DocsAuthError, Notion2DocsConfigError
from notion2docs.observability import get_logger

log = get_logger("notion2docs.auth")

SCOPES: list[str] = ["https://www.googleapis.com/auth/documents"]

_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
_TOKEN_URI = "https://oauth2.googleapis.com/token"


def client_config(config: Notion2DocsConfig) -> dict:
    """The OAuth client description expected by ``InstalledAppFlow``."""
    if not config.google_client_id or not config.google_client_secret:
        raise Notion2DocsConfigError(
            message="GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET are required for authorization",
            context={"missing": [
                name for name, value in (
                    ("GOOGLE_CLIENT_ID", config.google_client_id),
                    ("GOOGLE_CLIENT_SECRET", config.google_client_secret),
                ) if not value
            ]},
        )
    return {
        "installed": {
            "client_id": config.google_client_id,
            "client_secret": config.google_client_secret,
            "auth_uri": _AUTH_URI,
            "token_uri": _TOKEN_URI,
            "redirect_uris": ["http://localhost"],
        }
    }


def save_credentials(creds: Credentials, path: str | Path) -> None:
    target = Path(path)
    target.write_text(creds.to_json(), encoding="utf-8")
    log.info("google credentials saved", extra={"extra_fields": {"path": str(target)}})


def refresh_credentials(creds: Credentials, path: str | Path | None = None) -> Credentials:
    """Refresh *creds* in place and persist them to *path* if given."""
    try:
        creds.refresh(Request())
    except RefreshError as exc:
        raise Notion2DocsAuthError(
            message=f"Google token refresh failed: {exc}",
            context={"service": "docs"},
            cause=exc,
        ) from exc
    if path is not None:
        save_credentials(creds, path)
    return creds


def load_credentials(config: Notion2DocsConfig) -> Credentials | None:
    """Load stored credentials, refreshing them if expired.

    Returns ``None`` when no usable credentials are stored.
    """
    path = Path(config.google_credentials_path)
    if not path.exists():
        return None
    try:
        creds = Credentials.from_authorized_user_file(str(path), SCOPES)
    except (OSError, ValueError) as exc:
        raise Notion2DocsAuthError(
            message=f"Cannot read Google credentials from {path}",
            context={"service": "docs", "path": str(path)},
            cause=exc,
        ) from exc
    if creds.valid:
        return creds
    if creds.refresh_token:
        return refresh_credentials(creds, path)
    return None


def authorize(
    config: Notion2DocsConfig,
    *,
    port: int = 0,
    open_browser: bool = True,
) -> Credentials:
    """Run the browser consent flow and store the resulting credentials."""
    flow = InstalledAppFlow.from_client_config(client_config(config), SCOPES)
    creds = flow.run_local_server(
        port=port,
        open_browser=open_browser,
        access_type="offline",
        prompt="consent",
    )
    save_credentials(creds, config.google_credentials_path)
    return creds


def get_credentials(config: Notion2DocsConfig, *, interactive: bool = False) -> Credentials:
    """Return valid credentials, authorizing interactively if allowed.

    Raises
    ------
    Notion2DocsAuthError
        When nothing usable is stored and *interactive* is false.
    """
    creds = load_credentials(config)
    if creds is not None:
        return creds
    if not interactive:
        raise Notion2DocsAuthError(
            message="No valid Google credentials found; run `notion2docs auth` first",
            context={"service": "docs", "path": config.google_credentials_path},
        )
    return authorize(config)


def access_token(creds: Credentials, path: str | Path | None = None) -> str:
    """A currently valid access token for *creds*, refreshing when needed."""
    if not creds.valid:
        refresh_credentials(creds, path)
    return str(creds.token)
