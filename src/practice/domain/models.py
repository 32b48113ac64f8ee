from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.config import Category, Group


class PersistedModel(BaseModel):
    """Base for documents written to the user record store (camelCase keys)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Catalog Entity ---
class Module(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    group: Group
    sequence_number: int = Field(ge=1)
    duration_minutes: int = Field(gt=0)
    category: Category

    @staticmethod
    def make_id(group: Group, sequence_number: int) -> str:
        return f"{group.label} {sequence_number:02d}"


# --- Persisted Entities ---
class PracticeStat(PersistedModel):
    module_id: str
    completed_count: int = Field(default=0, ge=0)
    last_completed_date: str | None = None


class DailyAssignment(PersistedModel):
    module_id: str
    is_completed: bool = False
    assigned_date: str


class UserState(PersistedModel):
    """
    The persisted root document, one per user.
    Missing or null collections are normalized to empty lists on load.
    """

    user_id: str
    current_date: str = ""
    daily_assignments: list[DailyAssignment] = Field(default_factory=list)
    stats: list[PracticeStat] = Field(default_factory=list)
    recent_history: list[str] = Field(default_factory=list)
    carry_over: list[str] = Field(default_factory=list)

    # Store version for optimistic concurrency; never part of the document.
    revision: int = Field(default=0, exclude=True)

    @field_validator(
        "daily_assignments", "stats", "recent_history", "carry_over", mode="before"
    )
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    def stat_for(self, module_id: str) -> PracticeStat | None:
        for stat in self.stats:
            if stat.module_id == module_id:
                return stat
        return None

    def completed_count(self, module_id: str) -> int:
        stat = self.stat_for(module_id)
        return stat.completed_count if stat else 0

    def completion_counts(self) -> dict[str, int]:
        return {s.module_id: s.completed_count for s in self.stats}

    def incomplete_module_ids(self) -> list[str]:
        return [a.module_id for a in self.daily_assignments if not a.is_completed]

    def to_document(self) -> str:
        return self.model_dump_json(by_alias=True)


# --- Results ---
class AllocationError(str, Enum):
    NO_ELIGIBLE_MODULES = "NoEligibleModules"
    STORE_UNAVAILABLE = "StoreUnavailable"


class AllocationResult(BaseModel):
    success: bool
    daily_assignments: list[DailyAssignment] = Field(default_factory=list)
    total_duration: int = 0
    message: str | None = None
    # False when the duration band could not be met without breaking coverage.
    within_budget: bool = True
    error: AllocationError | None = None

    @classmethod
    def failure(cls, error: AllocationError, message: str) -> "AllocationResult":
        return cls(success=False, error=error, message=message, within_budget=False)


# --- (Data Transfer Objects) ---
@dataclass
class DailyPlan:
    """Output of one run of the selection pipeline, before persistence."""

    modules: list[Module]
    carry_over_ids: list[str]
    fresh_target: int
    within_budget: bool = True
    uncovered_groups: list[Group] = field(default_factory=list)

    @property
    def total_duration(self) -> int:
        return sum(m.duration_minutes for m in self.modules)

    @property
    def module_ids(self) -> list[str]:
        return [m.id for m in self.modules]


@dataclass
class ModuleProgress:
    module: Module
    completed_count: int
    cap: int
    last_completed_date: str | None

    @property
    def remaining(self) -> int:
        return max(0, self.cap - self.completed_count)

    @property
    def is_at_cap(self) -> bool:
        return self.completed_count >= self.cap
