"""
Roster adapter backed by the YAML team configuration.
"""

from typing import List, Sequence

from ..config import AppConfig
from ..domain.models import Participant


class ConfigRoster:
    """
    Serves team members from an ``AppConfig``.

    Identifiers the configuration does not know are left out of the
    response; the service layer decides how to report them.
    """

    def __init__(self, config: AppConfig):
        self.config = config

    async def get_members(self, identifiers: Sequence[str]) -> List[Participant]:
        """Return the configured members matching the given ids or names."""
        members: List[Participant] = []
        for identifier in identifiers:
            member = self.config.find_member(identifier)
            if member is not None:
                members.append(member.to_participant())
        return members

    async def get_group_members(self, group: str) -> List[Participant]:
        """Return all members of a group, by group id or name."""
        return self.config.members_in_group(group)
