"""
Tests for the session manager and the session caches.

The manager is exercised against the in-memory gateway with a fixed clock,
so expiry is tested without waiting.
"""

import asyncio

import pytest

from fundlove.activity import ActivityLogger
from fundlove.controller import create_session_manager
from fundlove.models.activity import ActivityEventType
from fundlove.models.ledger import Profile
from fundlove.services.gateway import (
    GatewayUnavailableError,
    InMemoryDataGateway,
    NotFoundError,
)
from fundlove.session import (
    FileSessionCache,
    MemorySessionCache,
    SessionManager,
    SessionState,
)
from fundlove.validation import ValidationFailedError


class UnreachableGateway(InMemoryDataGateway):
    """Gateway whose profile lookups always fail with a network error."""

    async def get_profile(self, profile_id):
        raise GatewayUnavailableError("backend unreachable")


@pytest.fixture
def store():
    return {}


@pytest.fixture
def activity():
    return ActivityLogger()


def make_manager(gateway, store, clock, activity=None):
    return SessionManager(
        gateway=gateway,
        cache=MemorySessionCache(store),
        clock=clock,
        activity_logger=activity,
    )


def logged_types(activity):
    return [e.event_type for e in activity.history]


class TestLogin:
    """Tests for logging in."""

    def test_login_caches_session(self, gateway, store, clock, alice):
        """Test that a login is authenticated and written to the cache."""
        manager = make_manager(gateway, store, clock)
        profile = asyncio.run(manager.login(alice.id))

        assert profile == alice
        assert manager.is_authenticated
        assert manager.state == SessionState.AUTHENTICATED
        assert store

    def test_login_without_selection(self, gateway, store, clock):
        """Test that an empty selection is rejected before any lookup."""
        manager = make_manager(gateway, store, clock)
        with pytest.raises(ValidationFailedError):
            asyncio.run(manager.login(""))
        assert manager.state == SessionState.UNAUTHENTICATED

    def test_login_unknown_profile(self, gateway, store, clock, activity):
        """Test that a profile removed since the list was shown cannot log in."""
        manager = make_manager(gateway, store, clock, activity)
        with pytest.raises(NotFoundError):
            asyncio.run(manager.login("user-ghost"))

        assert manager.state == SessionState.UNAUTHENTICATED
        assert manager.profile is None
        assert not store
        assert ActivityEventType.LOGIN_FAILED in logged_types(activity)


class TestRestore:
    """Tests for restoring a cached session."""

    def test_restore_within_window(self, gateway, store, clock, alice):
        """Test that a fresh session survives a reload."""
        asyncio.run(make_manager(gateway, store, clock).login(alice.id))
        clock.advance(hours=23)

        manager = make_manager(gateway, store, clock)
        profile = asyncio.run(manager.restore())

        assert profile == alice
        assert manager.is_authenticated

    def test_restore_uses_current_profile_data(self, gateway, store, clock, alice):
        """Test that the profile comes from the backend, not the cache."""
        asyncio.run(make_manager(gateway, store, clock).login(alice.id))
        gateway.add_profile(Profile(id=alice.id, name="Alicia", color=alice.color))

        manager = make_manager(gateway, store, clock)
        asyncio.run(manager.restore())

        assert manager.profile.name == "Alicia"

    def test_expired_session_is_purged(self, gateway, store, clock, alice, activity):
        """Test that a 25 hour old session is dropped even if the profile exists."""
        asyncio.run(make_manager(gateway, store, clock).login(alice.id))
        clock.advance(hours=25)

        manager = make_manager(gateway, store, clock, activity)
        profile = asyncio.run(manager.restore())

        assert profile is None
        assert manager.state == SessionState.UNAUTHENTICATED
        assert not store
        assert ActivityEventType.SESSION_EXPIRED in logged_types(activity)

    def test_deleted_profile_is_purged(self, gateway, store, clock, alice, activity):
        """Test that a session for a removed profile is dropped."""
        asyncio.run(make_manager(gateway, store, clock).login(alice.id))
        gateway.remove_profile(alice.id)

        manager = make_manager(gateway, store, clock, activity)
        assert asyncio.run(manager.restore()) is None
        assert manager.state == SessionState.UNAUTHENTICATED
        assert not store
        assert ActivityEventType.SESSION_DISCARDED in logged_types(activity)

    def test_unreachable_backend_drops_session(self, alice, store, clock):
        """Test that a session that cannot be verified is not trusted."""
        healthy = InMemoryDataGateway([alice], clock=clock)
        asyncio.run(make_manager(healthy, store, clock).login(alice.id))

        manager = make_manager(UnreachableGateway([alice]), store, clock)
        assert asyncio.run(manager.restore()) is None
        assert manager.state == SessionState.UNAUTHENTICATED
        assert not store

    def test_malformed_cache_is_purged(self, gateway, store, clock):
        """Test that unreadable cache content is treated as no session."""
        cache = MemorySessionCache(store)
        cache.write("{not json")

        manager = SessionManager(gateway=gateway, cache=cache, clock=clock)
        assert asyncio.run(manager.restore()) is None
        assert manager.state == SessionState.UNAUTHENTICATED
        assert cache.read() is None

    def test_empty_cache(self, gateway, store, clock):
        """Test that no cached session means the login screen."""
        manager = make_manager(gateway, store, clock)
        assert asyncio.run(manager.restore()) is None
        assert not manager.is_authenticated


class TestLogout:
    """Tests for logging out."""

    def test_logout_purges_cache(self, gateway, store, clock, alice, activity):
        """Test that logout forgets the session."""
        manager = make_manager(gateway, store, clock, activity)
        asyncio.run(manager.login(alice.id))

        manager.logout()

        assert manager.state == SessionState.UNAUTHENTICATED
        assert manager.profile is None
        assert not store
        assert ActivityEventType.USER_LOGGED_OUT in logged_types(activity)

    def test_logout_when_logged_out(self, gateway, store, clock):
        """Test that logging out twice is harmless."""
        manager = make_manager(gateway, store, clock)
        manager.logout()
        manager.logout()
        assert manager.state == SessionState.UNAUTHENTICATED


class TestFileSessionCache:
    """Tests for the file-backed cache."""

    def test_write_read_purge(self, tmp_path):
        """Test the full lifecycle of the cache file."""
        cache = FileSessionCache(tmp_path / "nested" / "session.json")

        assert cache.read() is None
        cache.write('{"a": 1}')
        assert cache.read() == '{"a": 1}'

        cache.purge()
        assert cache.read() is None
        assert not cache.path.exists()

    def test_purge_missing_file(self, tmp_path):
        """Test that purging a missing file does not raise."""
        FileSessionCache(tmp_path / "missing.json").purge()

    def test_undecodable_cache_file_is_purged(self, tmp_path, gateway, clock):
        """Test that a session file of raw bytes sends the user to login."""
        path = tmp_path / "session.json"
        path.write_bytes(b"\xff\xfe\x00garbage")

        manager = SessionManager(gateway=gateway, cache=FileSessionCache(path), clock=clock)

        assert asyncio.run(manager.restore()) is None
        assert manager.state == SessionState.UNAUTHENTICATED
        assert not path.exists()

    def test_session_survives_reload_on_disk(self, tmp_path, gateway, clock, alice):
        """Test a login restored by a second manager reading the same file."""
        path = tmp_path / "session.json"
        first = SessionManager(gateway=gateway, cache=FileSessionCache(path), clock=clock)
        asyncio.run(first.login(alice.id))

        second = SessionManager(gateway=gateway, cache=FileSessionCache(path), clock=clock)
        assert asyncio.run(second.restore()) == alice


class TestPerClientSessions:
    """Tests for keeping logins apart between clients."""

    def test_clients_do_not_share_a_login(self, gateway, alice):
        """Test that one client's login is invisible to another client."""
        first = create_session_manager(gateway, cache=MemorySessionCache({}))
        second = create_session_manager(gateway, cache=MemorySessionCache({}))

        asyncio.run(first.login(alice.id))

        assert first.is_authenticated
        assert asyncio.run(second.restore()) is None
        assert not second.is_authenticated

    def test_logout_is_per_client(self, gateway, alice, bob):
        """Test that logging out one client leaves the other logged in."""
        first = create_session_manager(gateway, cache=MemorySessionCache({}))
        second = create_session_manager(gateway, cache=MemorySessionCache({}))
        asyncio.run(first.login(alice.id))
        asyncio.run(second.login(bob.id))

        first.logout()

        assert second.is_authenticated
        assert second.profile == bob


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
