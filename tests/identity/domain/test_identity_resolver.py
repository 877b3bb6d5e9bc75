"""Tests for cart owner resolution."""

import pytest
from protean.exceptions import ValidationError

from identity.contact import EmailAddress
from identity.resolver import (
    GuestIdentity,
    UserIdentity,
    normalize_session_id,
    owner_fields,
    owner_of,
    resolve_identity,
)
from shared.errors import BadRequestError

SESSION = "3f2b8c1e-9a4d-4e7f-8b6a-1c2d3e4f5a6b"


class TestResolveIdentity:
    def test_authenticated_user(self):
        assert resolve_identity(authenticated_user_id="user-1") == UserIdentity(user_id="user-1")

    def test_guest_session(self):
        assert resolve_identity(session_header=SESSION) == GuestIdentity(session_id=SESSION)

    def test_user_wins_over_session(self):
        identity = resolve_identity(authenticated_user_id="user-1", session_header=SESSION)
        assert identity == UserIdentity(user_id="user-1")

    def test_neither_is_rejected(self):
        with pytest.raises(BadRequestError, match="Either authentication or x-session-id header required"):
            resolve_identity()

    def test_blank_header_counts_as_missing(self):
        with pytest.raises(BadRequestError, match="Either authentication"):
            resolve_identity(session_header="   ")

    def test_identities_are_distinct_by_kind(self):
        assert UserIdentity(user_id="x").key != GuestIdentity(session_id="x").key


class TestNormalizeSessionId:
    def test_trims_and_lowercases(self):
        assert normalize_session_id(f"  {SESSION.upper()} ") == SESSION

    @pytest.mark.parametrize(
        "raw",
        [
            "not-a-uuid",
            "3f2b8c1e-9a4d-1e7f-8b6a-1c2d3e4f5a6b",  # version 1
            "3f2b8c1e9a4d4e7f8b6a1c2d3e4f5a6b",
            "3f2b8c1e-9a4d-4e7f-8b6a-1c2d3e4f5a6b'; DROP TABLE carts;--",
            "",
        ],
    )
    def test_rejects_malformed_ids(self, raw):
        with pytest.raises(BadRequestError, match="Invalid session ID format"):
            normalize_session_id(raw)

    def test_rejects_none(self):
        with pytest.raises(BadRequestError):
            normalize_session_id(None)


class TestIdentityValueObjects:
    def test_guest_session_must_be_a_uuid4(self):
        with pytest.raises(ValidationError):
            GuestIdentity(session_id="not-a-uuid")

    def test_user_id_is_required(self):
        with pytest.raises(ValidationError):
            UserIdentity()

    def test_owner_fields(self):
        assert owner_fields(UserIdentity(user_id="user-1")) == {"user_id": "user-1", "session_id": None}
        assert owner_fields(GuestIdentity(session_id=SESSION)) == {"user_id": None, "session_id": SESSION}

    def test_owner_of_round_trips_owner_fields(self):
        for identity in (UserIdentity(user_id="user-1"), GuestIdentity(session_id=SESSION)):
            assert owner_of(**owner_fields(identity)) == identity

    def test_owner_of_needs_an_owner(self):
        with pytest.raises(BadRequestError):
            owner_of(None, None)


class TestEmailAddress:
    def test_valid_address(self):
        assert EmailAddress(address="ada@example.com").address == "ada@example.com"

    @pytest.mark.parametrize("address", ["not-an-email", "a@b", "two words@example.com"])
    def test_invalid_address(self, address):
        with pytest.raises(ValidationError) as exc_info:
            EmailAddress(address=address)
        assert exc_info.value.messages == {"address": ["Invalid email address"]}
