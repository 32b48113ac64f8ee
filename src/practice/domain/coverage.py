from src.config import Group
from src.practice.domain.catalog import Catalog
from src.practice.domain.eligibility import EligibilityFilter
from src.practice.domain.models import Module


class CoverageGuarantor:
    """
    Adds one module for every group missing from the selection.

    Policy: prefer a module that is eligible today, otherwise any module still
    below its category cap (recency is ignored for this fallback). Within each
    tier the shortest module wins, then the lowest sequence number. Capped
    modules are never added, so a group whose modules are all capped stays
    uncovered.
    """

    def __init__(self, catalog: Catalog, eligibility: EligibilityFilter) -> None:
        self.catalog = catalog
        self.eligibility = eligibility

    def missing_groups(self, selection: list[Module]) -> list[Group]:
        covered = {m.group for m in selection}
        return [g for g in self.catalog.groups() if g not in covered]

    def _pick(
        self,
        group: Group,
        taken: set[str],
        eligible_ids: set[str],
        counts: dict[str, int],
    ) -> Module | None:
        options = [
            m
            for m in self.catalog.by_group(group)
            if m.id not in taken and not self.eligibility.is_at_cap(m, counts)
        ]
        if not options:
            return None

        preferred = [m for m in options if m.id in eligible_ids] or options
        return min(preferred, key=lambda m: (m.duration_minutes, m.sequence_number))

    def ensure(
        self,
        selection: list[Module],
        eligible: list[Module],
        counts: dict[str, int],
    ) -> tuple[list[Module], list[Group]]:
        """Returns the patched selection and the groups that could not be covered."""
        result = list(selection)
        taken = {m.id for m in selection}
        eligible_ids = {m.id for m in eligible}
        uncovered: list[Group] = []

        for group in self.missing_groups(selection):
            module = self._pick(group, taken, eligible_ids, counts)
            if module is None:
                uncovered.append(group)
                continue
            result.append(module)
            taken.add(module.id)

        return result, uncovered
