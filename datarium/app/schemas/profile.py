"""
Investor Profile Schemas

Questionnaire definitions, stored answers and recommendation details.
"""
from typing import Dict, List, Literal

from pydantic import BaseModel, ConfigDict, Field, RootModel


class QuestionOption(BaseModel):
    """One selectable answer."""
    label: str
    value: str


class InvestorQuestion(BaseModel):
    """A questionnaire entry with its fixed option values."""
    id: str
    question: str
    options: List[QuestionOption]

    def accepts(self, value: str) -> bool:
        return any(option.value == value for option in self.options)


class InvestorProfile(RootModel[Dict[str, str]]):
    """
    Stored questionnaire answers: question id -> selected option value.

    Persisted as a flat JSON object.
    """

    def answer(self, question_id: str) -> str | None:
        return self.root.get(question_id)


RiskLevel = Literal["low", "moderate", "high"]


class RecommendationDetail(BaseModel):
    """Dashboard card for one recommendation key."""
    model_config = ConfigDict(populate_by_name=True)

    key: str
    title: str
    description: str
    icon: str = "bulb-outline"
    risk_level: RiskLevel = Field(..., alias="riskLevel")
    return_potential: RiskLevel = Field(..., alias="returnPotential")
