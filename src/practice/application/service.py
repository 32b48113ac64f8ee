import threading
from collections import defaultdict
from typing import cast

from src.config import PracticeConfig
from src.practice.domain.catalog import Catalog, default_catalog
from src.practice.domain.day_transition import DayTransition
from src.practice.domain.errors import (
    NoEligibleModulesError,
    StoreConflictError,
    StoreUnavailableError,
)
from src.practice.domain.models import (
    AllocationError,
    AllocationResult,
    DailyAssignment,
    DailyPlan,
    Module,
    ModuleProgress,
    PracticeStat,
    UserState,
)
from src.practice.domain.planner import DailyPlanner
from src.practice.domain.ports import IClock, IUserStateStore
from src.shared.telemetry import Telemetry, measure_time, record_outcome


class PracticeService:
    """
    Entry points used by the UI. Each call loads the user's state, runs the
    domain logic and writes the whole state back.

    Calls for the same user are serialized by a per-user lock; a write that
    loses an optimistic-concurrency race reruns the whole pipeline.
    """

    def __init__(
        self,
        store: IUserStateStore,
        clock: IClock,
        catalog: Catalog | None = None,
        planner: DailyPlanner | None = None,
        max_attempts: int = PracticeConfig.MAX_WRITE_ATTEMPTS,
    ) -> None:
        self.store = store
        self.clock = clock
        self.catalog = catalog or default_catalog()
        self.planner = planner or DailyPlanner(self.catalog)
        self.transition = DayTransition(self.planner.policy.history_capacity)
        self.max_attempts = max_attempts
        self.telemetry = Telemetry("PracticeService")

        self._locks: defaultdict[str, threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    def _lock_for(self, user_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks[user_id]

    def _load(self, user_id: str) -> UserState:
        state = self.store.get(user_id)
        return state if state is not None else UserState(user_id=user_id)

    # --- Allocation ---

    @measure_time("generate_daily_assignments")
    def generate_daily_assignments(self, user_id: str) -> AllocationResult:
        """Allocates a fresh set for today, replacing whatever is persisted."""
        Telemetry.start_trace()
        with self._lock_for(user_id):
            result = self._run_allocation(user_id, only_on_new_day=False)
        return cast(AllocationResult, result)

    @measure_time("check_and_transition")
    def check_and_transition_if_new_day(self, user_id: str) -> AllocationResult | None:
        """
        Allocates only when the civil date moved on since the last allocation.
        Returns None on the same day, so repeated triggers are harmless.
        """
        Telemetry.start_trace()
        with self._lock_for(user_id):
            return self._run_allocation(user_id, only_on_new_day=True)

    def _run_allocation(
        self, user_id: str, only_on_new_day: bool
    ) -> AllocationResult | None:
        try:
            for attempt in range(1, self.max_attempts + 1):
                state = self._load(user_id)
                today = self.clock.today()
                day_state = self.transition.classify(state, today)

                if only_on_new_day and not self.transition.needs_allocation(day_state):
                    return None

                carry_over = self.transition.carry_over_for(state, today)
                plan = self.planner.plan(state, carry_over)
                next_state = self.transition.apply(state, plan, today)

                try:
                    saved = self.store.put(user_id, next_state)
                except StoreConflictError as e:
                    self.telemetry.log_warning(
                        "Concurrent update, retrying allocation",
                        user_id=user_id,
                        attempt=attempt,
                        reason=str(e),
                    )
                    continue

                record_outcome("success" if plan.within_budget else "over_budget")
                return self._success(saved, plan)

            record_outcome("conflict")
            return AllocationResult.failure(
                AllocationError.STORE_UNAVAILABLE,
                f"Could not save the daily set after {self.max_attempts} attempts "
                "because the record kept changing. Please try again.",
            )
        except NoEligibleModulesError as e:
            record_outcome("no_eligible_modules")
            self.telemetry.log_info("Allocation failed", user_id=user_id, reason=str(e))
            return AllocationResult.failure(
                AllocationError.NO_ELIGIBLE_MODULES,
                f"No modules are available to assign today. {e}",
            )
        except StoreUnavailableError as e:
            record_outcome("store_unavailable")
            self.telemetry.log_error("User state store unavailable", e, user_id=user_id)
            return AllocationResult.failure(
                AllocationError.STORE_UNAVAILABLE,
                "Your practice data could not be loaded or saved. Please try again.",
            )

    def _success(self, state: UserState, plan: DailyPlan) -> AllocationResult:
        total = plan.total_duration
        message = f"Assigned {len(plan.modules)} modules totalling {total} minutes."
        if not plan.within_budget:
            policy = self.planner.policy
            message += (
                f" The set is outside the {policy.min_total}-{policy.max_total} "
                "minute range without dropping a part."
            )
        if plan.uncovered_groups:
            labels = ", ".join(g.label for g in plan.uncovered_groups)
            message += f" No module available for: {labels}."

        return AllocationResult(
            success=True,
            daily_assignments=state.daily_assignments,
            total_duration=total,
            message=message,
            within_budget=plan.within_budget,
        )

    # --- Reads ---

    def get_today_assignments(self, user_id: str) -> list[DailyAssignment]:
        try:
            state = self._load(user_id)
        except StoreUnavailableError as e:
            self.telemetry.log_error("Could not load today's set", e, user_id=user_id)
            return []
        if state.current_date != self.clock.today():
            return []
        return state.daily_assignments

    def get_module_info(self, module_id: str) -> Module | None:
        return self.catalog.get(module_id)

    def total_duration(self, assignments: list[DailyAssignment]) -> int:
        modules = self.catalog.resolve(a.module_id for a in assignments)
        return sum(m.duration_minutes for m in modules)

    def get_practice_stats(self, user_id: str) -> list[ModuleProgress]:
        try:
            state = self._load(user_id)
        except StoreUnavailableError as e:
            self.telemetry.log_error("Could not load stats", e, user_id=user_id)
            return []

        caps = self.planner.policy.caps
        progress = []
        for module in self.catalog:
            stat = state.stat_for(module.id)
            progress.append(
                ModuleProgress(
                    module=module,
                    completed_count=stat.completed_count if stat else 0,
                    cap=caps[module.category],
                    last_completed_date=stat.last_completed_date if stat else None,
                )
            )
        return progress

    # --- Completion ---

    @measure_time("toggle_completion")
    def toggle_completion(self, user_id: str, module_id: str) -> bool:
        """
        Flips a module in today's set. Ticking counts one more completion,
        unticking takes it back (never below zero).
        """
        with self._lock_for(user_id):
            try:
                for _ in range(self.max_attempts):
                    state = self._load(user_id)
                    if not self._apply_toggle(state, module_id):
                        self.telemetry.log_info(
                            "Toggle ignored: module not in today's set",
                            user_id=user_id,
                            module_id=module_id,
                        )
                        return False
                    try:
                        self.store.put(user_id, state)
                    except StoreConflictError:
                        continue
                    return True
            except StoreUnavailableError as e:
                self.telemetry.log_error("Toggle failed", e, user_id=user_id)
                return False

        self.telemetry.log_warning("Toggle gave up after conflicts", user_id=user_id)
        return False

    def _apply_toggle(self, state: UserState, module_id: str) -> bool:
        if state.current_date != self.clock.today():
            return False

        assignment = next(
            (a for a in state.daily_assignments if a.module_id == module_id), None
        )
        if assignment is None:
            return False

        was_completed = assignment.is_completed
        assignment.is_completed = not was_completed

        stat = state.stat_for(module_id)
        if not was_completed:
            if stat is None:
                stat = PracticeStat(module_id=module_id)
                state.stats.append(stat)
            stat.completed_count += 1
            stat.last_completed_date = self.clock.today()
        elif stat is not None:
            stat.completed_count = max(0, stat.completed_count - 1)

        return True
