"""Learning plan models: lessons, quizzes and the plan itself."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator


class Category(StrEnum):
    """Fixed lesson category taxonomy."""

    INCOME_MANAGEMENT = "Income Management"
    SAVINGS = "Savings"
    BUDGETING = "Budgeting"
    CREDIT = "Credit"
    DEBT = "Debt"
    INVESTING = "Investing"
    RETIREMENT = "Retirement"
    TAXES = "Taxes"
    REAL_ESTATE = "Real Estate"


class PlanModel(BaseModel):
    """Base for models that travel as camelCase JSON."""

    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class QuizQuestion(PlanModel):
    """A multiple-choice question with exactly four distinct options."""

    id: str
    question: str
    options: list[str]
    correct_answer: str = Field(alias="correctAnswer")
    explanation: str = ""

    @field_validator("options")
    @classmethod
    def _four_distinct_options(cls, options: list[str]) -> list[str]:
        if len(options) != 4:
            raise ValueError(f"expected 4 options, got {len(options)}")
        if len(set(options)) != 4:
            raise ValueError("options must be distinct")
        return options

    @model_validator(mode="after")
    def _answer_among_options(self) -> "QuizQuestion":
        if self.correct_answer not in self.options:
            raise ValueError("correctAnswer must match one of the options")
        return self


class Lesson(PlanModel):
    """One learning unit in a plan."""

    id: str
    title: str
    description: str = ""
    category: Category
    category_label: str = Field(default="", alias="categoryLabel")
    difficulty: int = Field(ge=1, le=5)
    estimated_minutes: int = Field(gt=0, alias="estimatedMinutes")
    content: str = ""
    why: str = ""
    quiz: list[QuizQuestion] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        # generated plans sometimes emit numeric ids
        if isinstance(value, int):
            return str(value)
        return value

    @model_validator(mode="after")
    def _default_label(self) -> "Lesson":
        if not self.category_label:
            self.category_label = self.category.value
        return self

    @property
    def has_quiz(self) -> bool:
        return bool(self.quiz)


class LearningPlan(PlanModel):
    """Ordered curriculum assigned to one user.

    Lesson order is the prerequisite chain used by the unlock policy.
    """

    lessons: list[Lesson] = Field(min_length=1)
    personalized_message: str = Field(default="", alias="personalizedMessage")
    estimated_completion_weeks: int = Field(default=1, gt=0, alias="estimatedCompletionWeeks")
    language: str = "en"
    source: str = "template"  # "ai" or "template"

    @model_validator(mode="after")
    def _unique_ids(self) -> "LearningPlan":
        ids = [lesson.id for lesson in self.lessons]
        if len(ids) != len(set(ids)):
            raise ValueError("lesson ids must be unique within a plan")
        return self

    @computed_field(alias="recommendedPath")
    @property
    def recommended_path(self) -> list[str]:
        return [lesson.id for lesson in self.lessons]

    def get_lesson(self, lesson_id: str) -> Lesson | None:
        for lesson in self.lessons:
            if lesson.id == lesson_id:
                return lesson
        return None

    def index_of(self, lesson_id: str) -> int:
        """Position of a lesson in the chain, -1 if absent."""
        for i, lesson in enumerate(self.lessons):
            if lesson.id == lesson_id:
                return i
        return -1
