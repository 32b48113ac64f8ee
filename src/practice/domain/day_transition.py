import logging
from enum import Enum, auto

from src.practice.domain.models import DailyAssignment, DailyPlan, UserState

logger = logging.getLogger(__name__)


class DayState(Enum):
    FIRST_RUN = auto()  # Nothing allocated yet for this user
    SAME_DAY = auto()  # Persisted set belongs to today: serve it as-is
    NEW_DAY = auto()  # Civil date moved on: carry over and reallocate


class DayTransition:
    """
    Pure state machine for the day boundary.
    Adheres to SRP: it decides and applies transitions, it never touches storage.
    """

    def __init__(self, history_capacity: int) -> None:
        self.history_capacity = history_capacity

    @staticmethod
    def classify(state: UserState, today: str) -> DayState:
        if not state.current_date:
            return DayState.FIRST_RUN
        if state.current_date == today:
            return DayState.SAME_DAY
        return DayState.NEW_DAY

    @staticmethod
    def needs_allocation(day_state: DayState) -> bool:
        return day_state in (DayState.FIRST_RUN, DayState.NEW_DAY)

    def carry_over_for(self, state: UserState, today: str) -> list[str]:
        """
        Incomplete work from the previous set when the day rolled over.
        On a same-day regeneration only a pending persisted carry-over applies.
        """
        day_state = self.classify(state, today)
        if day_state == DayState.NEW_DAY:
            return list(dict.fromkeys(state.incomplete_module_ids()))
        return list(state.carry_over)

    def push_history(self, history: list[str], module_ids: list[str]) -> list[str]:
        """Newest first, without duplicates, bounded by the capacity."""
        merged = list(dict.fromkeys([*module_ids, *history]))
        return merged[: self.history_capacity]

    def apply(self, state: UserState, plan: DailyPlan, today: str) -> UserState:
        """Returns the next persisted state; the input state is left untouched."""
        assignments = [
            DailyAssignment(module_id=module_id, is_completed=False, assigned_date=today)
            for module_id in plan.module_ids
        ]
        next_state = state.model_copy(
            update={
                "current_date": today,
                "daily_assignments": assignments,
                "recent_history": self.push_history(
                    state.recent_history, plan.module_ids
                ),
                "carry_over": [],
            },
            deep=True,
        )

        logger.info(
            f"🔄 Day: {state.current_date or '<none>'} --[allocate]--> {today} "
            f"({len(assignments)} modules)"
        )
        return next_state
