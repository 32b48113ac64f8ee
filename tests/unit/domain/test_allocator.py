import random

from src.config import Category
from src.practice.domain.allocator import CategoryAllocator
from src.practice.domain.sampler import WeightedSampler


def duration(modules):
    return sum(m.duration_minutes for m in modules)


def test_needs_split_two_to_one_without_carry_over(policy, first_pick_sampler):
    allocator = CategoryAllocator(policy, first_pick_sampler)

    assert allocator.fresh_target([]) == 180
    assert allocator.category_needs([]) == {Category.AUDIO: 120, Category.TEXT: 60}


def test_carry_over_shrinks_fresh_target(catalog, policy, first_pick_sampler):
    """
    GIVEN two carried modules: Part 3 01 (25 min audio) and Part 7 01 (30 min text)
    WHEN needs are computed
    THEN the fresh target is 180 - 55 and each category is reduced by its own carry
    """
    allocator = CategoryAllocator(policy, first_pick_sampler)
    carry = catalog.resolve(["Part 3 01", "Part 7 01"])

    needs = allocator.category_needs(carry)

    assert allocator.fresh_target(carry) == 125
    assert needs == {Category.AUDIO: 95, Category.TEXT: 30}
    assert sum(needs.values()) == allocator.fresh_target(carry)


def test_heavy_audio_carry_leaves_room_only_for_text(catalog, policy, first_pick_sampler):
    allocator = CategoryAllocator(policy, first_pick_sampler)
    carry = catalog.resolve(
        ["Part 3 01", "Part 3 02", "Part 3 03", "Part 4 01", "Part 4 02", "Part 4 03"]
    )

    assert allocator.fresh_target(carry) == 30
    assert allocator.category_needs(carry) == {Category.AUDIO: 0, Category.TEXT: 30}


def test_carry_over_beyond_target_means_no_fresh_intake(catalog, policy, first_pick_sampler):
    allocator = CategoryAllocator(policy, first_pick_sampler)
    carry = [m for m in catalog if m.group.label in ("Part 3", "Part 4", "Part 7")]

    assert allocator.fresh_target(carry) == 0
    assert allocator.allocate(carry, list(catalog), {}) == []


def test_fill_stops_once_need_is_reached(catalog, policy, first_pick_sampler):
    allocator = CategoryAllocator(policy, first_pick_sampler)

    picked = allocator.fill_category(
        120, [m for m in catalog if m.category == Category.AUDIO], {}
    )

    assert [m.id for m in picked] == [
        "Part 1 01",
        "Part 1 02",
        "Part 1 03",
        "Part 1 04",
        "Part 1 05",
        "Part 2 01",
        "Part 2 02",
        "Part 2 03",
        "Part 3 01",
        "Part 3 02",
    ]
    assert duration(picked) == 122


def test_fill_prefers_modules_within_tolerance(catalog, policy, first_pick_sampler):
    allocator = CategoryAllocator(policy, first_pick_sampler)
    candidates = catalog.resolve(["Part 3 01", "Part 2 01"])

    picked = allocator.fill_category(10, candidates, {})

    assert [m.id for m in picked] == ["Part 2 01"]


def test_fill_takes_smallest_overshoot_when_nothing_fits(catalog, policy, first_pick_sampler):
    allocator = CategoryAllocator(policy, first_pick_sampler)
    candidates = catalog.resolve(["Part 7 01", "Part 3 01"])

    picked = allocator.fill_category(10, candidates, {})

    assert [m.id for m in picked] == ["Part 3 01"]


def test_fill_stops_when_candidates_run_out(catalog, policy, first_pick_sampler):
    allocator = CategoryAllocator(policy, first_pick_sampler)
    candidates = catalog.resolve(["Part 1 01", "Part 1 02"])

    picked = allocator.fill_category(120, candidates, {})

    assert duration(picked) == 12


def test_allocate_never_redraws_carry_over(catalog, policy, first_pick_sampler):
    allocator = CategoryAllocator(policy, first_pick_sampler)
    carry = catalog.resolve(["Part 1 01"])

    fresh = allocator.allocate(carry, list(catalog), {})

    assert "Part 1 01" not in {m.id for m in fresh}


def test_random_fills_land_near_each_category_need(catalog, policy):
    for seed in range(30):
        allocator = CategoryAllocator(policy, WeightedSampler(random.Random(seed)))

        fresh = allocator.allocate([], list(catalog), {})

        audio = duration([m for m in fresh if m.category == Category.AUDIO])
        assert audio >= 120
        assert duration(fresh) >= 180
        assert len({m.id for m in fresh}) == len(fresh)


def test_audio_shortfall_moves_to_text(catalog, policy, first_pick_sampler):
    """
    GIVEN only one 6-minute audio module left to draw
    WHEN the day is allocated
    THEN text makes up the rest of the 180-minute target
    """
    allocator = CategoryAllocator(policy, first_pick_sampler)
    eligible = [m for m in catalog if m.category == Category.TEXT or m.id == "Part 1 01"]

    fresh = allocator.allocate([], eligible, {})

    audio = [m for m in fresh if m.category == Category.AUDIO]
    text = [m for m in fresh if m.category == Category.TEXT]
    assert [m.id for m in audio] == ["Part 1 01"]
    assert duration(text) >= 174
    assert duration(fresh) >= policy.target_minutes


def test_top_up_draws_from_either_category(catalog, policy, first_pick_sampler):
    allocator = CategoryAllocator(policy, first_pick_sampler)
    selection = catalog.resolve(["Part 3 01", "Part 7 01", "Part 7 02", "Part 7 03", "Part 7 04"])

    extra = allocator.top_up(selection, list(catalog), {})

    assert [m.id for m in extra] == [
        "Part 1 01",
        "Part 1 02",
        "Part 1 03",
        "Part 1 04",
        "Part 1 05",
        "Part 6 01",
    ]
    assert duration(selection + extra) == 185


def test_top_up_is_a_no_op_inside_the_band(catalog, policy, first_pick_sampler):
    allocator = CategoryAllocator(policy, first_pick_sampler)
    selection = [m for m in catalog if m.group.label in ("Part 3", "Part 4", "Part 7")]

    assert allocator.top_up(selection, list(catalog), {}) == []
