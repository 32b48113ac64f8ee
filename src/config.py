import os
from enum import Enum
from typing import Final


class Category(str, Enum):
    AUDIO = "Audio"
    TEXT = "Text"

    @classmethod
    def ordered(cls) -> list["Category"]:
        """Fill order used by the allocator: Audio first, then Text."""
        return [cls.AUDIO, cls.TEXT]


class Group(Enum):
    # Enum Member = ("Label", "Title")
    PART_1 = ("Part 1", "Photographs")
    PART_2 = ("Part 2", "Question-Response")
    PART_3 = ("Part 3", "Conversations")
    PART_4 = ("Part 4", "Talks")
    PART_5 = ("Part 5", "Incomplete Sentences")
    PART_6 = ("Part 6", "Text Completion")
    PART_7 = ("Part 7", "Reading Comprehension")

    def __init__(self, label: str, title: str):
        self.label = label
        self.title = title

    @property
    def order(self) -> int:
        return list(Group).index(self)


class PracticeConfig:
    # --- Infrastructure Switch ---
    USE_SQLITE: bool = True
    DB_PATH: str = os.getenv("PRACTICE_DB_PATH", "data/practice.db")
    DEFAULT_USER_ID: Final[str] = "default_user"

    # --- App Identity ---
    APP_TITLE = "TOEIC Daily Practice"

    # --- Daily Budget ---
    TARGET_DAILY_MINUTES = 180
    MIN_DAILY_MINUTES = 170
    MAX_DAILY_MINUTES = 190
    AUDIO_RATIO = 2 / 3
    FILL_OVERSHOOT_TOLERANCE = 5

    # --- Lifetime Caps ---
    MAX_AUDIO_COUNT = 20
    MAX_TEXT_COUNT = 10

    # --- Recency ---
    HISTORY_CAPACITY = 15

    # --- Calendar ---
    UTC_OFFSET_HOURS = 7

    # --- Store ---
    MAX_WRITE_ATTEMPTS = 3

    @staticmethod
    def cap_for(category: Category) -> int:
        if category == Category.AUDIO:
            return PracticeConfig.MAX_AUDIO_COUNT
        return PracticeConfig.MAX_TEXT_COUNT
