"""Pydantic schemas for the AI assistant proxy endpoints."""

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from growthtrack.db.enums import AdviceType


class MilestoneStatus(BaseModel):
    title: str
    is_achieved: bool


class AdviceRequest(BaseModel):
    """
    Advice request. Required fields depend on ``type``:

    - growth_analysis: name, age_months, gender, height, weight, bmi
    - milestone_evaluation: age_months, milestones
    - general_advice: question
    """
    type: AdviceType
    name: str | None = None
    age_months: int | None = Field(None, ge=0)
    gender: str | None = None
    height: float | None = None
    weight: float | None = None
    bmi: float | None = None
    milestones: list[MilestoneStatus] = []
    question: str | None = Field(None, max_length=4000)

    @model_validator(mode="after")
    def _check_fields(self):
        if self.type == AdviceType.GENERAL_ADVICE and not self.question:
            raise ValueError("question is required for general_advice")
        if self.type == AdviceType.MILESTONE_EVALUATION and self.age_months is None:
            raise ValueError("age_months is required for milestone_evaluation")
        if self.type == AdviceType.GROWTH_ANALYSIS and self.age_months is None:
            raise ValueError("age_months is required for growth_analysis")
        return self


class AdviceResponse(BaseModel):
    advice: str


class MealPlanRequest(BaseModel):
    age_months: int = Field(..., ge=0)
    child_name: str | None = None
    preferences: str | None = Field(None, max_length=1000)


class SymptomImageRequest(BaseModel):
    """Image as a data URL (``data:image/...;base64,...``)."""
    image_base64: str = Field(..., min_length=1)


class AnalysisResponse(BaseModel):
    analysis: str


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str = Field(..., min_length=1, max_length=4000)


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)
    history: list[ChatTurn] = Field(default_factory=list, max_length=20)


class ChatReply(BaseModel):
    reply: str
