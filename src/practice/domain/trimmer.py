from collections import Counter

from src.config import Category
from src.practice.domain.catalog import Catalog
from src.practice.domain.models import Module
from src.practice.domain.policy import AllocationPolicy
from src.shared.telemetry import Telemetry


class BudgetTrimmer:
    """
    Pure Domain Logic.
    Greedily removes modules until the day's total falls inside the band.

    A module may only be removed when:
    - it was not carried over from the previous day,
    - its group keeps at least one other representative,
    - removing it does not drop the total below the band.

    Among those, the category currently above its share of the *current*
    total goes first, then the most practiced module, then the longest one,
    then the latest in catalog order. Every pass removes one module, so the
    loop ends when the band is reached or no legal candidate remains.
    """

    def __init__(self, catalog: Catalog, policy: AllocationPolicy) -> None:
        self.catalog = catalog
        self.policy = policy
        self.telemetry = Telemetry("BudgetTrimmer")

    @staticmethod
    def total(modules: list[Module]) -> int:
        return sum(m.duration_minutes for m in modules)

    def over_share_category(self, modules: list[Module]) -> Category:
        total = self.total(modules)
        ideal_audio = total * self.policy.audio_ratio
        audio = sum(m.duration_minutes for m in modules if m.category == Category.AUDIO)
        return Category.AUDIO if audio > ideal_audio else Category.TEXT

    def removal_candidates(
        self, modules: list[Module], protected: set[str]
    ) -> list[Module]:
        total = self.total(modules)
        per_group = Counter(m.group for m in modules)
        return [
            m
            for m in modules
            if m.id not in protected
            and per_group[m.group] > 1
            and total - m.duration_minutes >= self.policy.min_total
        ]

    def trim(
        self,
        modules: list[Module],
        counts: dict[str, int],
        protected: set[str] | None = None,
    ) -> tuple[list[Module], bool]:
        """Returns the trimmed selection and whether its total is inside the band."""
        protected = protected or set()
        result = list(modules)
        floor = len(self.catalog.groups())

        while self.total(result) > self.policy.max_total and len(result) > floor:
            candidates = self.removal_candidates(result, protected)
            if not candidates:
                break

            over = self.over_share_category(result)
            victim = min(
                candidates,
                key=lambda m: (
                    m.category != over,
                    -counts.get(m.id, 0),
                    -m.duration_minutes,
                    -self.catalog.position(m),
                ),
            )
            result.remove(victim)

        total = self.total(result)
        within = self.policy.in_band(total)
        if not within:
            self.telemetry.log_warning(
                "Budget band not reachable",
                total=total,
                band=(self.policy.min_total, self.policy.max_total),
                modules=len(result),
            )
        return result, within
