"""Read-only profile lookups."""

from sqlalchemy.orm import Session

from marketplace_ledger.domain.dtos import ProfileInfo
from marketplace_ledger.exceptions import ProfileNotFoundError
from marketplace_ledger.models.profile import Profile
from marketplace_ledger.selectors.base import BaseSelector


class ProfileSelector(BaseSelector[Profile]):
    """Selector for profiles by id."""

    def __init__(self, session: Session):
        super().__init__(session)

    def find(self, profile_id: int) -> ProfileInfo | None:
        """Profile by id, or None."""
        profile = self.session.get(Profile, profile_id)
        return ProfileInfo.from_model(profile) if profile else None

    def get(self, profile_id: int) -> ProfileInfo:
        """
        Profile by id.

        Raises:
            ProfileNotFoundError: If the profile doesn't exist.
        """
        profile = self.find(profile_id)
        if profile is None:
            raise ProfileNotFoundError(profile_id)
        return profile
