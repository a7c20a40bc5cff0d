"""Tests for resolving the calling profile from request headers."""

import pytest

from marketplace_ledger.exceptions import UnauthenticatedError
from marketplace_ledger.models import ProfileRole
from marketplace_ledger.services.profile_resolver import HeaderProfileResolver


@pytest.fixture
def resolver(store):
    return HeaderProfileResolver(store)


class TestHeaderProfileResolver:
    """Tests for HeaderProfileResolver.resolve."""

    def test_resolves_known_profile(self, factory, resolver):
        profile_id = factory.contractor(first_name="Linus", profession="Programmer")

        profile = resolver.resolve({"profile_id": str(profile_id)})

        assert profile.id == profile_id
        assert profile.first_name == "Linus"
        assert profile.role == ProfileRole.CONTRACTOR

    def test_header_name_is_case_insensitive(self, factory, resolver):
        profile_id = factory.client()
        assert resolver.resolve({"Profile_Id": f" {profile_id} "}).id == profile_id

    def test_missing_header(self, resolver):
        with pytest.raises(UnauthenticatedError) as exc_info:
            resolver.resolve({"content-type": "application/json"})
        assert exc_info.value.surface == "unauthorized"

    def test_blank_header(self, resolver):
        with pytest.raises(UnauthenticatedError):
            resolver.resolve({"profile_id": "  "})

    def test_malformed_header(self, resolver):
        with pytest.raises(UnauthenticatedError):
            resolver.resolve({"profile_id": "abc"})

    def test_unknown_profile(self, resolver, captured_logs):
        with pytest.raises(UnauthenticatedError):
            resolver.resolve({"profile_id": "424242"})
        assert any(r["message"] == "profile_resolution_failed" for r in captured_logs())

    def test_custom_header_name(self, factory, store):
        profile_id = factory.client()
        resolver = HeaderProfileResolver(store, header_name="X-Profile")
        assert resolver.resolve({"x-profile": str(profile_id)}).id == profile_id
