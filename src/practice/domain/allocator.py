from src.config import Category
from src.practice.domain.models import Module
from src.practice.domain.policy import AllocationPolicy
from src.practice.domain.sampler import WeightedSampler
from src.shared.telemetry import Telemetry


class CategoryAllocator:
    """
    Pure Domain Logic.
    Fills each category toward its share of the day's target, Audio first.

    Carry-over modules are already part of the day, so their minutes come off
    the target before any fresh module is drawn. Each category's running sum
    starts from its own carry-over, so a category that is already heavy on
    carried work receives less (or nothing) from the fresh fill.
    """

    def __init__(self, policy: AllocationPolicy, sampler: WeightedSampler) -> None:
        self.policy = policy
        self.sampler = sampler
        self.telemetry = Telemetry("CategoryAllocator")

    def fresh_target(self, carry_over: list[Module]) -> int:
        carried = sum(m.duration_minutes for m in carry_over)
        return max(0, self.policy.target_minutes - carried)

    def category_needs(self, carry_over: list[Module]) -> dict[Category, int]:
        """Fresh minutes to draw per category; the values sum to fresh_target()."""
        remaining = self.fresh_target(carry_over)
        ordered = Category.ordered()
        needs: dict[Category, int] = {}

        for index, category in enumerate(ordered):
            if index == len(ordered) - 1:
                needs[category] = remaining
                break
            desired = round(self.policy.target_minutes * self.policy.ratio_for(category))
            carried = sum(
                m.duration_minutes for m in carry_over if m.category == category
            )
            need = min(max(desired - carried, 0), remaining)
            needs[category] = need
            remaining -= need

        return needs

    def fill_category(
        self, need: int, candidates: list[Module], counts: dict[str, int]
    ) -> list[Module]:
        pool = list(candidates)
        picked: list[Module] = []
        running = 0

        while running < need and pool:
            ceiling = need + self.policy.overshoot_tolerance - running
            fitting = [m for m in pool if m.duration_minutes <= ceiling]

            if fitting:
                choice = self.sampler.draw(fitting, counts)
            else:
                # Nothing fits the tolerance: take the smallest overshoot.
                choice = min(pool, key=lambda m: m.duration_minutes)

            if choice is None:
                break

            picked.append(choice)
            running += choice.duration_minutes
            pool.remove(choice)

        return picked

    def allocate(
        self,
        carry_over: list[Module],
        eligible: list[Module],
        counts: dict[str, int],
    ) -> list[Module]:
        """
        Returns the freshly drawn modules (carry-over not included).
        The last category takes whatever the earlier ones left of the fresh
        target, so an Audio shortfall is made up with Text.
        """
        carried_ids = {m.id for m in carry_over}
        target = self.fresh_target(carry_over)
        needs = self.category_needs(carry_over)
        ordered = Category.ordered()
        fresh: list[Module] = []

        for category in ordered:
            need = needs[category]
            if category == ordered[-1]:
                need = max(0, target - sum(m.duration_minutes for m in fresh))

            candidates = [
                m
                for m in eligible
                if m.category == category and m.id not in carried_ids
            ]
            picked = self.fill_category(need, candidates, counts)
            fresh.extend(picked)

            self.telemetry.log_info(
                "Category filled",
                category=category.value,
                need=need,
                filled=sum(m.duration_minutes for m in picked),
                pool=len(candidates),
            )

        return fresh

    def top_up(
        self,
        selection: list[Module],
        eligible: list[Module],
        counts: dict[str, int],
    ) -> list[Module]:
        """
        Draws more eligible modules, of either category, while the day is
        still under the band's minimum.
        """
        total = sum(m.duration_minutes for m in selection)
        if total >= self.policy.min_total:
            return []

        taken = {m.id for m in selection}
        candidates = [m for m in eligible if m.id not in taken]
        extra = self.fill_category(self.policy.target_minutes - total, candidates, counts)

        self.telemetry.log_info(
            "Day topped up",
            short_by=self.policy.min_total - total,
            added=sum(m.duration_minutes for m in extra),
            pool=len(candidates),
        )
        return extra
