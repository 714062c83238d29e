"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import List, Optional, Sequence

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.exceptions import UnknownGroupError, UnknownParticipantError
from .domain.models import Participant
from .domain.timezones import is_valid_timezone


def _validate_timezone(value: str) -> str:
    if not is_valid_timezone(value):
        raise ValueError(f"Unknown timezone: {value}")
    return value


class FinderDefaults(BaseModel):
    """Default settings for meeting searches."""
    min_duration: int = 1
    max_duration: int = 4
    allow_flex_hours: bool = True
    flex_range: int = 2

    @field_validator("min_duration", "max_duration")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        """Ensure meeting durations fit into a day."""
        if not 1 <= value <= 24:
            raise ValueError(f"Duration must be between 1 and 24 hours, got {value}")
        return value

    @field_validator("flex_range")
    @classmethod
    def validate_flex_range(cls, value: int) -> int:
        if not 0 <= value <= 12:
            raise ValueError(f"flex_range must be between 0 and 12, got {value}")
        return value

    @model_validator(mode="after")
    def validate_duration_order(self) -> "FinderDefaults":
        """Ensure the shortest duration does not exceed the longest."""
        if self.max_duration < self.min_duration:
            raise ValueError("max_duration must not be shorter than min_duration")
        return self


class GroupConfig(BaseModel):
    """Team group configuration."""
    id: str
    name: str
    order: int = 0


class MemberConfig(BaseModel):
    """Team member configuration."""
    id: str
    name: str
    title: str = ""
    timezone: str
    working_hours_start: int = 9
    working_hours_end: int = 17
    group: Optional[str] = None

    @field_validator("working_hours_start", "working_hours_end")
    @classmethod
    def validate_hour(cls, v: int) -> int:
        """Validate hour is between 0 and 23."""
        if not 0 <= v <= 23:
            raise ValueError(f"Hour must be between 0 and 23, got {v}")
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        return _validate_timezone(value)

    def to_participant(self) -> Participant:
        """Convert to the domain participant."""
        return Participant(
            id=self.id,
            name=self.name,
            title=self.title,
            timezone=self.timezone,
            working_hours_start=self.working_hours_start,
            working_hours_end=self.working_hours_end,
            group_id=self.group
        )


class AppConfig(BaseModel):
    """Application configuration."""
    viewer_timezone: str = "UTC"
    log_level: str = "WARNING"
    defaults: FinderDefaults = Field(default_factory=FinderDefaults)
    groups: List[GroupConfig] = Field(default_factory=list)
    members: List[MemberConfig] = Field(default_factory=list)

    @field_validator("viewer_timezone")
    @classmethod
    def validate_viewer_timezone(cls, value: str) -> str:
        return _validate_timezone(value)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("groups")
    @classmethod
    def validate_groups(cls, value: List[GroupConfig]) -> List[GroupConfig]:
        """Ensure group ids are unique."""
        seen: set[str] = set()
        for group in value:
            if group.id in seen:
                raise ValueError(f"Duplicate group id detected: {group.id}")
            seen.add(group.id)
        return value

    @field_validator("members")
    @classmethod
    def validate_members(cls, value: List[MemberConfig]) -> List[MemberConfig]:
        """Ensure member ids and names are unique."""
        seen_ids: set[str] = set()
        seen_names: set[str] = set()
        for member in value:
            name_key = member.name.lower()
            if member.id in seen_ids:
                raise ValueError(f"Duplicate member id detected: {member.id}")
            if name_key in seen_names:
                raise ValueError(f"Duplicate member name detected: {member.name}")
            seen_ids.add(member.id)
            seen_names.add(name_key)
        return value

    @model_validator(mode="after")
    def validate_group_references(self) -> "AppConfig":
        """Ensure every member points at a configured group."""
        group_ids = {group.id for group in self.groups}
        for member in self.members:
            if member.group is not None and member.group not in group_ids:
                raise ValueError(
                    f"Member {member.name} references unknown group: {member.group}"
                )
        return self

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    def find_member(self, identifier: str) -> MemberConfig | None:
        """Find a member by id, or by name ignoring case."""
        for member in self.members:
            if member.id == identifier:
                return member
        for member in self.members:
            if member.name.lower() == identifier.lower():
                return member
        return None

    def find_group(self, identifier: str) -> GroupConfig | None:
        """Find a group by id, or by name ignoring case."""
        for group in self.groups:
            if group.id == identifier or group.name.lower() == identifier.lower():
                return group
        return None

    def resolve_participant(self, identifier: str) -> Participant:
        """
        Resolve a member id or name to a participant.

        Raises:
            UnknownParticipantError: If identifier cannot be resolved
        """
        member = self.find_member(identifier)
        if member is None:
            raise UnknownParticipantError([identifier])
        return member.to_participant()

    def resolve_participants(self, identifiers: Sequence[str]) -> List[Participant]:
        """
        Resolve multiple participant identifiers, ensuring uniqueness.

        Args:
            identifiers: Iterable of member ids or names.

        Returns:
            List of unique participants in request order.

        Raises:
            UnknownParticipantError: Listing every identifier that could not be resolved
        """
        resolved: List[Participant] = []
        unknown_identifiers: List[str] = []

        for identifier in identifiers:
            member = self.find_member(identifier)
            if member is None:
                unknown_identifiers.append(identifier)
                continue

            if all(p.id != member.id for p in resolved):
                resolved.append(member.to_participant())

        if unknown_identifiers:
            raise UnknownParticipantError(sorted(set(unknown_identifiers)))

        return resolved

    def members_in_group(self, identifier: str) -> List[Participant]:
        """
        All members of a group, in roster order.

        Raises:
            UnknownGroupError: If the group is not configured
        """
        group = self.find_group(identifier)
        if group is None:
            raise UnknownGroupError(f"Unknown group: '{identifier}'")
        return [m.to_participant() for m in self.members if m.group == group.id]

    def all_participants(self) -> List[Participant]:
        return [m.to_participant() for m in self.members]


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Fall back to the checkout root, next to the meetingfinder/ package directory
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
