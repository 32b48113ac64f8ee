from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.config import Category, PracticeConfig


class AllocationPolicy(BaseModel):
    """Tunable numbers of the daily allocation. Defaults come from PracticeConfig."""

    model_config = ConfigDict(frozen=True)

    target_minutes: int = Field(default=PracticeConfig.TARGET_DAILY_MINUTES, gt=0)
    min_total: int = PracticeConfig.MIN_DAILY_MINUTES
    max_total: int = PracticeConfig.MAX_DAILY_MINUTES
    audio_ratio: float = Field(default=PracticeConfig.AUDIO_RATIO, ge=0, le=1)
    overshoot_tolerance: int = Field(
        default=PracticeConfig.FILL_OVERSHOOT_TOLERANCE, ge=0
    )
    audio_cap: int = Field(default=PracticeConfig.MAX_AUDIO_COUNT, ge=0)
    text_cap: int = Field(default=PracticeConfig.MAX_TEXT_COUNT, ge=0)
    history_capacity: int = Field(default=PracticeConfig.HISTORY_CAPACITY, ge=0)

    @model_validator(mode="after")
    def _check_band(self) -> "AllocationPolicy":
        if not self.min_total <= self.target_minutes <= self.max_total:
            raise ValueError("target_minutes must lie inside [min_total, max_total]")
        return self

    @property
    def caps(self) -> dict[Category, int]:
        return {Category.AUDIO: self.audio_cap, Category.TEXT: self.text_cap}

    def ratio_for(self, category: Category) -> float:
        if category == Category.AUDIO:
            return self.audio_ratio
        return 1 - self.audio_ratio

    def in_band(self, total: int) -> bool:
        return self.min_total <= total <= self.max_total
