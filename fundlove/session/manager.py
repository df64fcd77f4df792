"""
Session Manager

Keeps the logged-in profile across reloads with a time-bounded local cache.

The cache is never trusted on its own. Restoring a session is two-phase:
1. Read the cached record and check its age
2. Confirm with the backend that the profile still exists

Any failure in either phase purges the cache and sends the user back to
the login screen.

States: UNAUTHENTICATED -> VALIDATING -> AUTHENTICATED | UNAUTHENTICATED.
AUTHENTICATED -> UNAUTHENTICATED on logout or failed re-validation.
"""

from datetime import timedelta
from enum import Enum
from typing import Callable, Optional

from pydantic import ValidationError

from fundlove.activity import ActivityLogger
from fundlove.models.ledger import Profile, SessionRecord, utc_now
from fundlove.services.gateway import (
    DataGatewayInterface,
    GatewayError,
    NotFoundError,
)
from fundlove.session.cache import SessionCacheInterface
from fundlove.validation import InputValidator


SESSION_TTL = timedelta(hours=24)


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    VALIDATING = "validating"
    AUTHENTICATED = "authenticated"


class SessionManager:
    """Owns the session cache lifecycle and the current profile."""

    def __init__(
        self,
        gateway: DataGatewayInterface,
        cache: SessionCacheInterface,
        ttl: timedelta = SESSION_TTL,
        clock: Callable = utc_now,
        activity_logger: Optional[ActivityLogger] = None,
        validator: Optional[InputValidator] = None,
    ):
        self._gateway = gateway
        self._cache = cache
        self._ttl = ttl
        self._clock = clock
        self._activity = activity_logger or ActivityLogger()
        self._validator = validator or InputValidator()
        self._state = SessionState.UNAUTHENTICATED
        self._profile: Optional[Profile] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def profile(self) -> Optional[Profile]:
        return self._profile

    @property
    def is_authenticated(self) -> bool:
        return self._state == SessionState.AUTHENTICATED

    def _drop(self, profile_id: Optional[str], reason: str) -> None:
        self._cache.purge()
        self._profile = None
        self._state = SessionState.UNAUTHENTICATED
        self._activity.log_session_discarded(profile_id, reason)

    def _read_cached(self) -> Optional[SessionRecord]:
        raw = self._cache.read()
        if raw is None:
            return None
        try:
            return SessionRecord.model_validate_json(raw)
        except ValidationError:
            self._drop(None, "malformed")
            return None

    async def restore(self) -> Optional[Profile]:
        """
        Restore the cached session, if it is still valid.

        Returns:
            The authenticated profile, or None if the user has to log in
        """
        record = self._read_cached()
        if record is None:
            self._profile = None
            self._state = SessionState.UNAUTHENTICATED
            return None

        profile_id = record.profile.id
        if record.is_expired(self._clock(), self._ttl):
            self._cache.purge()
            self._profile = None
            self._state = SessionState.UNAUTHENTICATED
            self._activity.log_session_expired(profile_id)
            return None

        self._state = SessionState.VALIDATING
        try:
            profile = await self._gateway.get_profile(profile_id)
        except NotFoundError:
            self._drop(profile_id, "profile no longer exists")
            return None
        except GatewayError as e:
            self._drop(profile_id, f"could not verify profile: {e}")
            return None

        self._profile = profile
        self._state = SessionState.AUTHENTICATED
        self._activity.log_session_restored(profile.id)
        return profile

    async def login(self, profile_id: str) -> Profile:
        """
        Log in as the selected profile.

        The profile is fetched again from the backend rather than taken from
        the list the login screen was rendered from.

        Raises:
            ValidationFailedError: If no profile was selected
            NotFoundError: If the profile no longer exists
            GatewayUnavailableError: If the backend cannot be reached
        """
        self._validator.raise_for_errors(
            self._validator.validate_profile_selection(profile_id)
        )

        self._state = SessionState.VALIDATING
        try:
            profile = await self._gateway.get_profile(profile_id)
        except GatewayError as e:
            self._profile = None
            self._state = SessionState.UNAUTHENTICATED
            self._activity.log_login_failed(profile_id, str(e))
            raise

        record = SessionRecord(profile=profile, established_at=self._clock())
        self._cache.write(record.model_dump_json())

        self._profile = profile
        self._state = SessionState.AUTHENTICATED
        self._activity.log_user_logged_in(profile.id)
        return profile

    def logout(self) -> None:
        """Forget the session. No backend call is made."""
        profile_id = self._profile.id if self._profile else None
        self._cache.purge()
        self._profile = None
        self._state = SessionState.UNAUTHENTICATED
        self._activity.log_user_logged_out(profile_id)
