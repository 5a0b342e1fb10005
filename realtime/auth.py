"""Session bootstrap against the hosted auth service (REST API).

Signs in once at startup, anonymously or with a custom token handed to the
process, and keeps the resulting ID token for the document database client.

Endpoints:
    POST identitytoolkit  accounts:signUp                 (anonymous)
    POST identitytoolkit  accounts:signInWithCustomToken  (custom token)
    POST securetoken      token                           (refresh)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import requests

from realtime.errors import AuthenticationError
from utils.config import FirebaseConfig
from utils.http import SessionManager, post_form, post_json

logger = logging.getLogger("budget_dashboard.auth")

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"
SECURE_TOKEN_URL = "https://securetoken.googleapis.com/v1/token"

# Treat tokens as expired this many seconds early
_EXPIRY_SKEW = 60


@dataclass
class Session:
    """An authenticated identity with its bearer tokens."""

    uid: str
    id_token: str
    refresh_token: str
    expires_at: float
    anonymous: bool = True

    @property
    def expired(self) -> bool:
        return time.time() >= self.expires_at - _EXPIRY_SKEW

    def to_dict(self) -> dict:
        """Public view of the session; tokens are never exposed."""
        return {"uid": self.uid, "anonymous": self.anonymous}


def _error_message(body: dict, status: int) -> str:
    error = body.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return body.get("error_description") or error
    return f"HTTP {status}"


class SessionBootstrapper:
    """Obtains and refreshes sessions for one web-app configuration."""

    def __init__(self, firebase_config: FirebaseConfig,
                 session_manager: SessionManager | None = None,
                 timeout: float = 20) -> None:
        self.config = firebase_config
        self.timeout = timeout
        self._http = session_manager or SessionManager()

    def sign_in(self, custom_token: str | None = None) -> Session:
        """Sign in with *custom_token* if given, otherwise anonymously.

        Raises:
            AuthenticationError: The request failed or was rejected.
        """
        if custom_token:
            url = f"{IDENTITY_TOOLKIT_URL}/accounts:signInWithCustomToken"
            payload = {"token": custom_token, "returnSecureToken": True}
        else:
            url = f"{IDENTITY_TOOLKIT_URL}/accounts:signUp"
            payload = {"returnSecureToken": True}

        try:
            status, body = post_json(
                self._http.session, url, payload,
                params={"key": self.config.api_key}, timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise AuthenticationError(str(exc)) from exc
        if status != 200 or not body.get("idToken"):
            raise AuthenticationError(_error_message(body, status))

        session = Session(
            uid=body.get("localId", ""),
            id_token=body["idToken"],
            refresh_token=body.get("refreshToken", ""),
            expires_at=time.time() + int(body.get("expiresIn", 3600)),
            anonymous=not custom_token,
        )
        logger.info("signed in uid=%s anonymous=%s", session.uid, session.anonymous)
        return session

    def refresh(self, session: Session) -> Session:
        """Exchange the refresh token of *session* for a fresh ID token.

        Raises:
            AuthenticationError: The session has no refresh token or the
                exchange failed.
        """
        if not session.refresh_token:
            raise AuthenticationError("session has no refresh token")
        try:
            status, body = post_form(
                self._http.session, SECURE_TOKEN_URL,
                {"grant_type": "refresh_token", "refresh_token": session.refresh_token},
                params={"key": self.config.api_key}, timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise AuthenticationError(str(exc)) from exc
        if status != 200 or not body.get("id_token"):
            raise AuthenticationError(_error_message(body, status))

        logger.debug("refreshed token uid=%s", session.uid)
        return Session(
            uid=body.get("user_id", session.uid),
            id_token=body["id_token"],
            refresh_token=body.get("refresh_token", session.refresh_token),
            expires_at=time.time() + int(body.get("expires_in", 3600)),
            anonymous=session.anonymous,
        )

    def close(self) -> None:
        self._http.close()
