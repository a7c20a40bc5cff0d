"""
Profile resolution for inbound requests.

The HTTP layer identifies its caller with a ``profile_id`` header; the
resolver turns that header into the caller's current ProfileInfo, which
then supplies ``caller_id`` to every workflow.  This is a lookup, not
authentication: no credential is checked.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

from marketplace_ledger.db.engine import LedgerStore
from marketplace_ledger.domain.dtos import ProfileInfo
from marketplace_ledger.exceptions import UnauthenticatedError
from marketplace_ledger.logging_config import get_logger
from marketplace_ledger.selectors.profile_selector import ProfileSelector

logger = get_logger("services.profile_resolver")

DEFAULT_PROFILE_HEADER = "profile_id"


class ProfileResolver(Protocol):
    """Anything that maps request headers to the calling profile."""

    def resolve(self, headers: Mapping[str, str]) -> ProfileInfo: ...


class HeaderProfileResolver:
    """
    Resolve the caller from a profile id header.

    Header names are matched case-insensitively.  A missing header, a
    non-integer value or an unknown id all raise UnauthenticatedError.
    """

    def __init__(self, store: LedgerStore, header_name: str = DEFAULT_PROFILE_HEADER):
        self._store = store
        self._header_name = header_name.lower()

    def resolve(self, headers: Mapping[str, str]) -> ProfileInfo:
        raw = None
        for key, value in headers.items():
            if key.lower() == self._header_name:
                raw = value
                break
        if raw is None or not str(raw).strip():
            raise UnauthenticatedError(f"missing '{self._header_name}' header")

        try:
            profile_id = int(str(raw).strip())
        except ValueError:
            raise UnauthenticatedError(f"malformed '{self._header_name}' header") from None

        with self._store.session_scope() as session:
            profile = ProfileSelector(session).find(profile_id)
        if profile is None:
            logger.info("profile_resolution_failed", extra={"profile_id": profile_id})
            raise UnauthenticatedError(f"unknown profile {profile_id}")
        return profile
