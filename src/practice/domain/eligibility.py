from collections.abc import Iterable

from src.config import Category
from src.practice.domain.catalog import Catalog
from src.practice.domain.models import Module


class EligibilityFilter:
    """
    Pure Domain Logic.
    Decides which catalog modules may be freshly sampled today.
    """

    def __init__(self, catalog: Catalog, caps: dict[Category, int]) -> None:
        self.catalog = catalog
        self.caps = caps

    def is_at_cap(self, module: Module, counts: dict[str, int]) -> bool:
        return counts.get(module.id, 0) >= self.caps[module.category]

    def eligible(
        self,
        counts: dict[str, int],
        recent_history: Iterable[str],
        carry_over: Iterable[str] = (),
    ) -> list[Module]:
        recent = set(recent_history)
        carried = set(carry_over)

        result = []
        for module in self.catalog:
            # 1. Lifetime cap of the module's category
            if self.is_at_cap(module, counts):
                continue
            # 2. Recently assigned, unless carried over
            if module.id in recent and module.id not in carried:
                continue
            result.append(module)
        return result
