"""
Domain-specific exception hierarchy for the meeting finder application.
"""


class MeetingFinderError(Exception):
    """Base class for all application-level errors."""


class RosterError(MeetingFinderError):
    """Raised when participant data cannot be loaded from the roster."""


class UnknownParticipantError(RosterError):
    """Raised when a requested participant is not part of the roster."""

    def __init__(self, identifiers):
        self.identifiers = list(identifiers)
        missing = ", ".join(self.identifiers)
        super().__init__(
            f"Unknown participant identifier(s): {missing}. "
            "Use a member id or a configured name."
        )


class UnknownGroupError(RosterError):
    """Raised when a requested group is not part of the roster."""
