"""
Investor Profile Service

Fixed suitability questionnaire, per-user stored answers and the rule set
turning answers into investment recommendations.

Answers live under "@datarium_investor_profile_user_<id>" so each user has
their own profile.
"""
from typing import Any, Dict, List, Mapping, Optional, Tuple

from datarium.app.logging_config import get_logger
from datarium.app.schemas.profile import (
    InvestorProfile,
    InvestorQuestion,
    QuestionOption,
    RecommendationDetail,
    )
from datarium.app.services.app_context import AppContext, user_profile_key
from datarium.app.services.key_value_store import StorageError

logger = get_logger(__name__)


def _question(question_id: str, text: str, *options: Tuple[str, str]) -> InvestorQuestion:
    return InvestorQuestion(
        id=question_id,
        question=text,
        options=[QuestionOption(label=label, value=value) for label, value in options],
        )


# =============================================================================
# QUESTIONNAIRE
# =============================================================================

INVESTOR_QUESTIONS: List[InvestorQuestion] = [
    _question(
        "experience", "How much investing experience do you have?",
        ("None", "none"), ("Some", "some"), ("A lot", "a_lot"),
        ),
    _question(
        "objective", "What is your main goal when investing?",
        ("Preserve my capital", "preserve"), ("Earn regular income", "income"), ("Grow my wealth", "growth"),
        ),
    _question(
        "risk", "How do you feel about risk?",
        ("I avoid it", "avoid"), ("I accept some risk", "some"), ("I accept high risk for higher returns", "high"),
        ),
    _question(
        "investmentHorizon", "For how long do you plan to keep your money invested?",
        ("Up to 1 year", "shortTerm"), ("1 to 5 years", "mediumTerm"), ("More than 5 years", "longTerm"),
        ),
    _question(
        "availableAmount", "How much do you have available to invest?",
        ("Up to 1,000", "upTo1000"), ("1,001 to 5,000", "1001To5000"),
        ("5,001 to 20,000", "5001To20000"), ("Over 20,000", "over20000"),
        ),
    _question(
        "esgInterest", "Are you interested in sustainable (ESG) investments?",
        ("Yes", "yes"), ("No", "no"),
        ),
    _question(
        "monthlyIncome", "What is your monthly income?",
        ("Up to 2,000", "upTo2000"), ("2,001 to 5,000", "2001To5000"),
        ("5,001 to 10,000", "5001To10000"), ("Over 10,000", "over10000"),
        ),
    _question(
        "financialSituation", "How would you describe your financial situation?",
        ("Stable", "stable"), ("Comfortable", "comfortable"), ("Precarious", "precarious"),
        ),
    ]

_QUESTIONS_BY_ID: Dict[str, InvestorQuestion] = {q.id: q for q in INVESTOR_QUESTIONS}


# =============================================================================
# RECOMMENDATIONS
# =============================================================================

def _detail(key: str, title: str, description: str, icon: str, risk: str, potential: str) -> RecommendationDetail:
    return RecommendationDetail(
        key=key, title=title, description=description, icon=icon,
        risk_level=risk, return_potential=potential,
        )


RECOMMENDATION_CATALOG: Dict[str, RecommendationDetail] = {
    d.key: d for d in (
        _detail(
            "treasury-selic", "Treasury Selic bonds",
            "Government bonds tracking the base interest rate, with daily liquidity and the lowest credit risk.",
            "shield-checkmark-outline", "low", "low",
            ),
        _detail(
            "daily-liquidity-cdb", "Daily-liquidity CDBs",
            "Bank deposit certificates that can be redeemed any day, suited to an emergency reserve.",
            "cash-outline", "low", "low",
            ),
        _detail(
            "low-risk-fixed-income-funds", "Low-risk fixed income funds",
            "Professionally managed funds holding short-term public and private bonds.",
            "wallet-outline", "low", "low",
            ),
        _detail(
            "medium-long-term-cdb", "Medium and long-term CDBs (fixed-rate, inflation-linked)",
            "Longer deposit certificates that pay a premium in exchange for locking the money in.",
            "calendar-outline", "low", "moderate",
            ),
        _detail(
            "moderate-multimarket-funds", "Moderate multimarket funds",
            "Funds mixing fixed income, equities and currencies within a moderate risk budget.",
            "git-merge-outline", "moderate", "moderate",
            ),
        _detail(
            "real-estate-funds", "Real estate investment funds (REITs)",
            "Listed funds owning properties or real-estate debt, paying out most of their income.",
            "business-outline", "moderate", "moderate",
            ),
        _detail(
            "blue-chip-stocks", "Large-company stocks (blue chips)",
            "Shares of established, liquid companies leading their sectors.",
            "trending-up-outline", "high", "high",
            ),
        _detail(
            "equity-funds", "Equity funds",
            "Funds investing mainly in stocks, managed by professionals.",
            "bar-chart-outline", "high", "high",
            ),
        _detail(
            "crypto-assets", "Crypto assets (with caution and study)",
            "Highly volatile digital assets; keep them to a small share of the portfolio.",
            "logo-bitcoin", "high", "high",
            ),
        _detail(
            "growth-stocks-focus", "Focus on stocks with appreciation potential",
            "Favour companies expected to grow earnings faster than the market.",
            "rocket-outline", "high", "high",
            ),
        _detail(
            "income-focus", "Focus on real estate funds and dividend-paying stocks",
            "Build recurring income from rents and dividends.",
            "repeat-outline", "moderate", "moderate",
            ),
        _detail(
            "esg-funds", "Consider ESG funds and sustainable companies",
            "Funds and companies selected for environmental, social and governance practices.",
            "leaf-outline", "moderate", "moderate",
            ),
        )
    }

PROFILE_NOT_FILLED = RecommendationDetail(
    key="profile-not-filled",
    title="Profile not filled",
    description="Fill in your investor profile to receive personalised recommendations.",
    icon="information-circle-outline",
    risk_level="low",
    return_potential="low",
    )

PROFILE_LOAD_ERROR = RecommendationDetail(
    key="profile-load-error",
    title="Error loading",
    description="Your investor profile could not be loaded. Please try again later.",
    icon="warning-outline",
    risk_level="low",
    return_potential="low",
    )


def generate_recommendation_keys(profile: InvestorProfile) -> List[str]:
    """
    Map questionnaire answers to recommendation keys.

    Risk tolerance picks the base products, then the objective and ESG
    interest add focus entries. Duplicates are dropped, first occurrence wins.

    Args:
        profile: Stored answers

    Returns:
        Ordered list of keys of RECOMMENDATION_CATALOG
    """
    keys: List[str] = []

    risk = profile.answer("risk")
    if risk == "avoid":
        keys += ["treasury-selic", "daily-liquidity-cdb"]
        if profile.answer("availableAmount") == "upTo1000":
            keys.append("low-risk-fixed-income-funds")
    elif risk == "some":
        keys += ["medium-long-term-cdb", "moderate-multimarket-funds", "real-estate-funds"]
    elif risk == "high":
        keys += ["blue-chip-stocks", "equity-funds", "crypto-assets"]

    objective = profile.answer("objective")
    if objective == "growth":
        keys.append("growth-stocks-focus")
    elif objective == "income":
        keys.append("income-focus")

    if profile.answer("esgInterest") == "yes":
        keys.append("esg-funds")

    return list(dict.fromkeys(keys))


def validate_answers(answers: Mapping[str, Any]) -> Optional[str]:
    """
    Check that every question is answered with one of its option values.

    Returns:
        None if valid, otherwise an error message
    """
    for question in INVESTOR_QUESTIONS:
        value = answers.get(question.id)
        if value is None or value == "":
            return f"Question '{question.id}' is not answered"
        if not question.accepts(value):
            return f"Invalid answer '{value}' for question '{question.id}'"

    unknown = sorted(set(answers) - set(_QUESTIONS_BY_ID))
    if unknown:
        return f"Unknown question(s): {', '.join(unknown)}"
    return None


class InvestorProfileService:
    """Questionnaire answers and recommendations of the current user."""

    def __init__(self, context: AppContext):
        self.context = context

    @staticmethod
    def questions() -> List[InvestorQuestion]:
        return list(INVESTOR_QUESTIONS)

    async def load_profile(self) -> Tuple[Optional[InvestorProfile], Optional[str]]:
        """
        Read the current user's stored answers.

        Returns:
            Tuple of (profile or None if never saved, None) on success,
            or (None, error_message) on failure
        """
        user = self.context.current_user
        if user is None:
            return None, "No user signed in"
        try:
            profile = await self.context.store.load_model(user_profile_key(user.id), InvestorProfile)
        except StorageError as e:
            logger.error("Failed to load investor profile", user_id=user.id, error=str(e))
            return None, f"Storage error: {e}"
        return profile, None

    async def save_profile(self, answers: Mapping[str, str]) -> Tuple[bool, Optional[str]]:
        """
        Validate and store a complete set of answers (replaces the previous profile).

        Returns:
            Tuple of (True, None) on success or (False, error_message) on failure
        """
        user = self.context.current_user
        if user is None:
            return False, "No user signed in"

        error = validate_answers(answers)
        if error:
            logger.info("Investor profile rejected", user_id=user.id, reason=error)
            return False, error

        profile = InvestorProfile(dict(answers))
        try:
            async with self.context.partition_lock(user.id):
                await self.context.store.save_model(user_profile_key(user.id), profile)
        except StorageError as e:
            logger.error("Failed to save investor profile", user_id=user.id, error=str(e))
            return False, f"Storage error: {e}"

        logger.info("Investor profile saved", user_id=user.id, risk=profile.answer("risk"))
        return True, None

    async def get_recommendations(self) -> List[RecommendationDetail]:
        """
        Recommendations for the current user's profile.

        Returns a single placeholder entry when no profile was saved yet, or
        when it could not be loaded.
        """
        profile, error = await self.load_profile()
        if error:
            return [PROFILE_LOAD_ERROR]
        if profile is None:
            return [PROFILE_NOT_FILLED]
        return [RECOMMENDATION_CATALOG[key] for key in generate_recommendation_keys(profile)]
