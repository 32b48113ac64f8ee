from collections.abc import Iterable, Iterator

from src.config import Category, Group
from src.practice.domain.models import Module

# (group, number of modules, minutes per module, category)
TOEIC_LAYOUT: list[tuple[Group, int, int, Category]] = [
    (Group.PART_1, 5, 6, Category.AUDIO),
    (Group.PART_2, 3, 14, Category.AUDIO),
    (Group.PART_3, 3, 25, Category.AUDIO),
    (Group.PART_4, 3, 25, Category.AUDIO),
    (Group.PART_5, 5, 15, Category.TEXT),
    (Group.PART_6, 5, 10, Category.TEXT),
    (Group.PART_7, 4, 30, Category.TEXT),
]


class Catalog:
    """
    Immutable, ordered list of practice modules.
    Built once at start-up and passed to every component that needs it.
    """

    def __init__(self, modules: Iterable[Module]) -> None:
        self._modules: tuple[Module, ...] = tuple(modules)
        self._by_id: dict[str, Module] = {}
        self._position: dict[str, int] = {}
        for index, module in enumerate(self._modules):
            if module.id in self._by_id:
                raise ValueError(f"Duplicate module id in catalog: {module.id}")
            self._by_id[module.id] = module
            self._position[module.id] = index

    @classmethod
    def from_layout(cls, layout: list[tuple[Group, int, int, Category]]) -> "Catalog":
        modules = [
            Module(
                id=Module.make_id(group, number),
                group=group,
                sequence_number=number,
                duration_minutes=minutes,
                category=category,
            )
            for group, count, minutes, category in layout
            for number in range(1, count + 1)
        ]
        return cls(modules)

    def __iter__(self) -> Iterator[Module]:
        return iter(self._modules)

    def __len__(self) -> int:
        return len(self._modules)

    def __contains__(self, module_id: object) -> bool:
        return module_id in self._by_id

    @property
    def modules(self) -> tuple[Module, ...]:
        return self._modules

    def get(self, module_id: str) -> Module | None:
        return self._by_id.get(module_id)

    def resolve(self, module_ids: Iterable[str]) -> list[Module]:
        """Maps ids to modules, silently skipping ids the catalog does not know."""
        return [self._by_id[i] for i in module_ids if i in self._by_id]

    def position(self, module: Module) -> int:
        return self._position[module.id]

    def by_group(self, group: Group) -> list[Module]:
        return [m for m in self._modules if m.group == group]

    def groups(self) -> list[Group]:
        """Groups present in the catalog, in Group order."""
        present = {m.group for m in self._modules}
        return [g for g in Group if g in present]

    def sort(self, modules: Iterable[Module]) -> list[Module]:
        return sorted(modules, key=lambda m: (m.group.order, m.sequence_number))


def default_catalog() -> Catalog:
    return Catalog.from_layout(TOEIC_LAYOUT)
