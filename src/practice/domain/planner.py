from src.config import Category
from src.practice.domain.allocator import CategoryAllocator
from src.practice.domain.catalog import Catalog
from src.practice.domain.coverage import CoverageGuarantor
from src.practice.domain.eligibility import EligibilityFilter
from src.practice.domain.errors import NoEligibleModulesError
from src.practice.domain.models import DailyPlan, UserState
from src.practice.domain.policy import AllocationPolicy
from src.practice.domain.sampler import WeightedSampler
from src.practice.domain.trimmer import BudgetTrimmer
from src.shared.telemetry import Telemetry, measure_time


class DailyPlanner:
    """
    Runs the selection pipeline for one day:
    eligibility -> category fill -> group coverage -> top-up -> budget trim.

    Pure with respect to storage: it reads a UserState and returns a DailyPlan.
    """

    def __init__(
        self,
        catalog: Catalog,
        policy: AllocationPolicy | None = None,
        sampler: WeightedSampler | None = None,
    ) -> None:
        self.catalog = catalog
        self.policy = policy or AllocationPolicy()
        self.sampler = sampler or WeightedSampler()
        self.telemetry = Telemetry("DailyPlanner")

        self.eligibility = EligibilityFilter(catalog, self.policy.caps)
        self.allocator = CategoryAllocator(self.policy, self.sampler)
        self.coverage = CoverageGuarantor(catalog, self.eligibility)
        self.trimmer = BudgetTrimmer(catalog, self.policy)

    @measure_time("plan_day")
    def plan(self, state: UserState, carry_over_ids: list[str]) -> DailyPlan:
        counts = state.completion_counts()

        known_ids = list(dict.fromkeys(i for i in carry_over_ids if i in self.catalog))
        dropped = [i for i in carry_over_ids if i not in self.catalog]
        if dropped:
            self.telemetry.log_warning("Ignoring unknown carry-over ids", ids=dropped)
        carry_over = self.catalog.resolve(known_ids)

        eligible = self.eligibility.eligible(counts, state.recent_history, known_ids)

        if not carry_over:
            empty = [
                c.value
                for c in Category.ordered()
                if not any(m.category == c for m in eligible)
            ]
            if empty:
                raise NoEligibleModulesError(
                    f"No eligible modules left for: {', '.join(empty)}"
                )

        fresh = self.allocator.allocate(carry_over, eligible, counts)
        selection, uncovered = self.coverage.ensure(carry_over + fresh, eligible, counts)
        selection += self.allocator.top_up(selection, eligible, counts)
        trimmed, within_budget = self.trimmer.trim(
            selection, counts, protected=set(known_ids)
        )

        unique = list({m.id: m for m in trimmed}.values())
        plan = DailyPlan(
            modules=self.catalog.sort(unique),
            carry_over_ids=known_ids,
            fresh_target=self.allocator.fresh_target(carry_over),
            within_budget=within_budget,
            uncovered_groups=uncovered,
        )

        self.telemetry.log_info(
            "Day planned",
            modules=len(plan.modules),
            total=plan.total_duration,
            carry_over=len(known_ids),
            within_budget=within_budget,
            uncovered=[g.label for g in uncovered],
        )
        return plan
