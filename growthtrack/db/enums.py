"""Enum definitions for application constants."""

from enum import Enum


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class MilestoneCategory(str, Enum):
    """Developmental domains a milestone belongs to."""
    MOTOR_GROSS = "motor_gross"
    MOTOR_FINE = "motor_fine"
    LANGUAGE = "language"
    COGNITIVE = "cognitive"
    SOCIAL = "social"


class ActivityType(str, Enum):
    """
    Daily activity kinds.

    MOOD entries carry ``mood_rating``; the others carry ``value`` + ``unit``.
    """
    SLEEP = "sleep"
    FEEDING = "feeding"
    WATER = "water"
    SCREEN_TIME = "screen_time"
    MOOD = "mood"


class AdviceType(str, Enum):
    """Kinds of assistant advice requests."""
    GROWTH_ANALYSIS = "growth_analysis"
    MILESTONE_EVALUATION = "milestone_evaluation"
    GENERAL_ADVICE = "general_advice"
