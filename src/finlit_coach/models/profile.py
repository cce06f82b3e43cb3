"""User profile and onboarding models."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from finlit_coach.models.plan import LearningPlan


class IncomeRange(StrEnum):
    """Onboarding income brackets."""

    UNDER_30K = "under_30k"
    FROM_30K_TO_60K = "30k_60k"
    FROM_60K_TO_100K = "60k_100k"
    FROM_100K_TO_150K = "100k_150k"
    OVER_150K = "over_150k"
    PREFER_NOT_SAY = "prefer_not_say"
    NOT_SPECIFIED = "not_specified"


class OnboardingAnswers(BaseModel):
    """Answers collected by the onboarding survey."""

    model_config = ConfigDict(populate_by_name=True)

    country: str = ""
    language: str = "en"
    age_group: str = Field(default="", alias="ageGroup")
    income_range: str = Field(default=IncomeRange.NOT_SPECIFIED.value, alias="incomeRange")
    cultural_value: str = Field(default="", alias="culturalValue")
    financial_goals: str = Field(alias="financialGoals")

    @field_validator("financial_goals")
    @classmethod
    def _goals_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("financialGoals must not be empty")
        return value


class UserProfile(BaseModel):
    """Per-user profile record, mutated only through merge-patch updates."""

    user_id: str
    email: str = ""
    income_range: str = IncomeRange.NOT_SPECIFIED.value
    financial_goals: str = ""
    learning_plan: list[LearningPlan] = Field(default_factory=list)
    onboarding: OnboardingAnswers | None = None
    points: int = Field(default=0, ge=0)
    streak_days: int = 0
    simple_mode: bool = False
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def current_plan(self) -> LearningPlan | None:
        """Only the first stored plan is ever used."""
        if self.learning_plan:
            return self.learning_plan[0]
        return None


class ProfilePatch(BaseModel):
    """Fields a client may change through a profile merge-patch."""

    model_config = ConfigDict(extra="forbid")

    email: str | None = None
    income_range: str | None = None
    financial_goals: str | None = None
    streak_days: int | None = None
    simple_mode: bool | None = None
