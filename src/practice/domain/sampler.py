import random
from typing import Protocol

from src.practice.domain.models import Module


class RandomSource(Protocol):
    def random(self) -> float: ...


def weight_for(completed_count: int) -> float:
    """Never-practiced modules weigh 1; weight decays toward 0 but never reaches it."""
    return 1.0 / (completed_count + 1)


class WeightedSampler:
    """
    Draws one module with probability proportional to its weight.
    The random source is injected so tests can pin the draw.
    """

    def __init__(self, rng: RandomSource | None = None) -> None:
        self.rng: RandomSource = rng if rng is not None else random.Random()

    def pick(self, candidates: list[Module], weights: list[float]) -> Module | None:
        if not candidates:
            return None

        total = sum(weights)
        if total <= 0:
            return candidates[0]

        draw = self.rng.random() * total
        cumulative = 0.0
        for module, weight in zip(candidates, weights, strict=True):
            cumulative += weight
            if cumulative >= draw:
                return module

        # Floating point residue: the draw landed past the last boundary.
        return candidates[-1]

    def draw(self, candidates: list[Module], counts: dict[str, int]) -> Module | None:
        weights = [weight_for(counts.get(m.id, 0)) for m in candidates]
        return self.pick(candidates, weights)
