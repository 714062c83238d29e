"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .meeting_planner import MeetingPlannerService, RosterProtocol

__all__ = ["MeetingPlannerService", "RosterProtocol"]
