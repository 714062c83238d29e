"""
Adapters layer - Sources of team roster data.
"""

from .config_roster import ConfigRoster

__all__ = ["ConfigRoster"]
