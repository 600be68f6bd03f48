"""
Session gate: who is signed in, and who wants to know when that changes.

The board core only sees the narrow Identity value. Provider adapters map
their own user objects down to it.

Gates:
  LocalSessionGate     - in-process account table (development, tests)
  SupabaseSessionGate  - Supabase GoTrue REST API via requests
"""
import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Optional, Dict, Any, Callable, List

import requests

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class AuthError(Exception):
    """Raised when the provider rejects a sign-in or sign-up."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@dataclass(frozen=True)
class Identity:
    """The only view of a user the board core depends on."""
    display_name: str
    email: str


SessionListener = Callable[[Optional[Identity]], None]


class SessionGate:
    """
    Base gate: tracks the current identity and notifies listeners on change.

    Provider adapters subclass this and implement sign_in() and sign_up();
    sign_out() may be extended to revoke the provider session.
    """

    def __init__(self):
        self._current: Optional[Identity] = None
        self._listeners: List[SessionListener] = []

    def get_current_user(self) -> Optional[Identity]:
        return self._current

    def on_session_change(self, callback: SessionListener) -> Callable[[], None]:
        """Register a callback; returns a function that unregisters it."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)
        return unsubscribe

    def _set_identity(self, identity: Optional[Identity]) -> None:
        if identity == self._current:
            return
        self._current = identity
        for callback in list(self._listeners):
            try:
                callback(identity)
            except Exception as e:
                logger.error(f"Error in session listener: {e}")

    def sign_in(self, email: str, password: str) -> Identity:
        """Start a session. Subclasses must override; raises AuthError on rejection."""
        raise NotImplementedError

    def sign_up(self, email: str, password: str, name: str = "") -> Optional[Identity]:
        """
        Create an account. Subclasses must override.

        Returns None when email confirmation is pending; raises AuthError on rejection.
        """
        raise NotImplementedError

    def sign_out(self) -> None:
        self._set_identity(None)


def _require_credentials(email: str, password: str) -> str:
    email = (email or "").strip()
    if not email or not password:
        raise AuthError("Email and password are required")
    return email


def _hash_password(email: str, password: str) -> str:
    return hashlib.sha256(f"{email.lower()}:{password}".encode("utf-8")).hexdigest()


class LocalSessionGate(SessionGate):
    """In-process accounts. Sign-up signs the user straight in."""

    def __init__(self):
        super().__init__()
        self._accounts: Dict[str, Dict[str, str]] = {}  # email -> {name, password}

    def sign_up(self, email: str, password: str, name: str = "") -> Optional[Identity]:
        email = _require_credentials(email, password)
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError(f"Password should be at least {MIN_PASSWORD_LENGTH} characters")
        key = email.lower()
        if key in self._accounts:
            raise AuthError("User already registered")
        self._accounts[key] = {
            "name": (name or "").strip(),
            "password": _hash_password(email, password),
        }
        logger.info(f"Registered local account {email}")
        return self.sign_in(email, password)

    def sign_in(self, email: str, password: str) -> Identity:
        email = _require_credentials(email, password)
        account = self._accounts.get(email.lower())
        if not account or not hmac.compare_digest(account["password"], _hash_password(email, password)):
            raise AuthError("Invalid login credentials")
        identity = Identity(display_name=account["name"] or email.split("@")[0], email=email)
        self._set_identity(identity)
        return identity


class SupabaseSessionGate(SessionGate):
    """Email/password auth against a Supabase project's GoTrue endpoints."""

    def __init__(self, base_url: str, api_key: str, timeout: float = 10):
        super().__init__()
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._access_token: Optional[str] = None

    def _headers(self, token: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Content-Type": "application/json",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            r = requests.post(
                f"{self.base_url}{path}",
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Auth provider unreachable: {e}")
            raise AuthError("Authentication service unavailable")
        try:
            body = r.json()
        except ValueError:
            body = {}
        if not r.ok:
            raise AuthError(_error_message(body))
        return body if isinstance(body, dict) else {}

    def sign_in(self, email: str, password: str) -> Identity:
        email = _require_credentials(email, password)
        body = self._post("/auth/v1/token?grant_type=password", {
            "email": email,
            "password": password,
        })
        self._access_token = body.get("access_token")
        identity = identity_from_user(body.get("user") or {})
        self._set_identity(identity)
        return identity

    def sign_up(self, email: str, password: str, name: str = "") -> Optional[Identity]:
        email = _require_credentials(email, password)
        body = self._post("/auth/v1/signup", {
            "email": email,
            "password": password,
            "data": {"full_name": (name or "").strip()},
        })
        # Projects with email confirmation return the bare user, no session
        if not body.get("access_token"):
            logger.info(f"Sign-up for {email} awaiting email confirmation")
            return None
        self._access_token = body["access_token"]
        identity = identity_from_user(body.get("user") or {})
        self._set_identity(identity)
        return identity

    def sign_out(self) -> None:
        """End the session locally; a failed remote logout is only logged."""
        token, self._access_token = self._access_token, None
        if token:
            try:
                r = requests.post(
                    f"{self.base_url}/auth/v1/logout",
                    headers=self._headers(token),
                    timeout=self.timeout,
                )
                if not r.ok:
                    logger.warning(f"Remote logout returned {r.status_code}")
            except requests.RequestException as e:
                logger.warning(f"Remote logout failed: {e}")
        self._set_identity(None)


def identity_from_user(user: Dict[str, Any]) -> Identity:
    """Map a provider user object to Identity."""
    email = user.get("email") or ""
    metadata = user.get("user_metadata") or {}
    name = metadata.get("full_name") or metadata.get("name") or email.split("@")[0]
    return Identity(display_name=name, email=email)


def _error_message(body: Any) -> str:
    if isinstance(body, dict):
        for key in ("error_description", "msg", "message", "error"):
            if body.get(key):
                return str(body[key])
    return "An error occurred"
