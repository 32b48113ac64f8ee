import pytest

from src.config import Category, Group
from src.practice.adapters.clock import FixedDateClock
from src.practice.adapters.db_manager import DatabaseManager
from src.practice.adapters.memory_store import InMemoryUserStateStore
from src.practice.adapters.sqlite_store import SQLiteUserStateStore
from src.practice.application.service import PracticeService
from src.practice.domain.catalog import Catalog, default_catalog
from src.practice.domain.models import DailyAssignment, PracticeStat, UserState
from src.practice.domain.planner import DailyPlanner
from src.practice.domain.policy import AllocationPolicy
from src.practice.domain.sampler import WeightedSampler


class SequenceRandom:
    """
    Deterministic stand-in for random.Random.
    Replays the given values, repeating the last one forever.
    """

    def __init__(self, *values: float) -> None:
        self.values = list(values) or [0.0]
        self.calls = 0

    def random(self) -> float:
        value = self.values[min(self.calls, len(self.values) - 1)]
        self.calls += 1
        return value


@pytest.fixture
def catalog() -> Catalog:
    return default_catalog()


@pytest.fixture
def policy() -> AllocationPolicy:
    return AllocationPolicy()


@pytest.fixture
def first_pick_sampler() -> WeightedSampler:
    """Always draws 0.0, i.e. the first candidate in catalog order."""
    return WeightedSampler(SequenceRandom(0.0))


@pytest.fixture
def make_rng():
    return SequenceRandom


@pytest.fixture
def planner(catalog, policy, first_pick_sampler) -> DailyPlanner:
    return DailyPlanner(catalog, policy, first_pick_sampler)


@pytest.fixture
def user_id() -> str:
    return "learner"


@pytest.fixture
def today() -> str:
    return "2024-03-10"


@pytest.fixture
def clock(today) -> FixedDateClock:
    return FixedDateClock(today)


@pytest.fixture
def memory_store() -> InMemoryUserStateStore:
    return InMemoryUserStateStore()


@pytest.fixture
def sqlite_store():
    """Returns a clean, empty in-memory SQLite store."""
    db_manager = DatabaseManager(db_path=":memory:")
    yield SQLiteUserStateStore(db_manager=db_manager)
    db_manager.close()


@pytest.fixture
def service(memory_store, clock, catalog, planner) -> PracticeService:
    return PracticeService(memory_store, clock, catalog=catalog, planner=planner)


@pytest.fixture
def sample_state(user_id) -> UserState:
    return UserState(
        user_id=user_id,
        current_date="2024-03-09",
        daily_assignments=[
            DailyAssignment(module_id="Part 1 01", is_completed=True, assigned_date="2024-03-09"),
            DailyAssignment(module_id="Part 3 01", is_completed=False, assigned_date="2024-03-09"),
            DailyAssignment(module_id="Part 7 01", is_completed=False, assigned_date="2024-03-09"),
        ],
        stats=[
            PracticeStat(module_id="Part 1 01", completed_count=1, last_completed_date="2024-03-09")
        ],
        recent_history=["Part 1 01", "Part 3 01", "Part 7 01"],
    )


@pytest.fixture
def capped_counts(catalog, policy):
    """Completion counts that put every module at its category cap."""

    def build(except_ids: tuple[str, ...] = ()) -> list[PracticeStat]:
        return [
            PracticeStat(
                module_id=m.id,
                completed_count=policy.audio_cap
                if m.category == Category.AUDIO
                else policy.text_cap,
            )
            for m in catalog
            if m.id not in except_ids
        ]

    return build


@pytest.fixture
def tiny_layout():
    # One module per group: coverage alone fills the day.
    return [
        (Group.PART_1, 1, 20, Category.AUDIO),
        (Group.PART_2, 1, 30, Category.AUDIO),
        (Group.PART_3, 1, 30, Category.AUDIO),
        (Group.PART_4, 1, 40, Category.AUDIO),
        (Group.PART_5, 1, 20, Category.TEXT),
        (Group.PART_6, 1, 20, Category.TEXT),
        (Group.PART_7, 1, 20, Category.TEXT),
    ]
