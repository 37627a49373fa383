"""Parenting assistant: builds prompts and relays gateway completions."""

import json
import logging
import re
from typing import Any

from growthtrack.core.errors import UpstreamFailure
from growthtrack.db.enums import AdviceType
from growthtrack.schemas.assistant import (
    AdviceRequest,
    ChatRequest,
    MealPlanRequest,
    SymptomImageRequest,
)
from growthtrack.services.ai_gateway import AIGateway, ChatMessage

logger = logging.getLogger(__name__)

FALLBACK_ADVICE = "Unable to generate advice right now."
FALLBACK_REPLY = "Sorry, I could not process that request."

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def format_age(age_months: int) -> str:
    if age_months < 12:
        return f"{age_months} months"
    return f"{age_months // 12} years {age_months % 12} months"


def build_advice_messages(request: AdviceRequest) -> list[ChatMessage]:
    if request.type == AdviceType.GROWTH_ANALYSIS:
        system = (
            "You are a child growth specialist. Assess growth data against WHO "
            "standards and give parents clear, supportive, actionable insight."
        )
        user = (
            "Analyze this child's growth data:\n"
            f"- Name: {request.name or 'child'}\n"
            f"- Age: {request.age_months} months\n"
            f"- Gender: {request.gender or 'unspecified'}\n"
            f"- Height: {request.height} cm\n"
            f"- Weight: {request.weight} kg\n"
            f"- BMI: {request.bmi}\n\n"
            "Keep it to three short paragraphs: overall assessment, notable "
            "observations, practical recommendations."
        )
    elif request.type == AdviceType.MILESTONE_EVALUATION:
        system = (
            "You are a child development specialist. Evaluate milestone progress "
            "and give supportive, age-appropriate guidance to parents."
        )
        lines = "\n".join(
            f"- {m.title}: {'achieved' if m.is_achieved else 'not yet'}"
            for m in request.milestones
        )
        user = (
            f"Evaluate these milestones for a {request.age_months}-month-old:\n"
            f"{lines or '- (none recorded)'}\n\n"
            "Keep it to three short paragraphs."
        )
    else:
        system = (
            "You are a friendly assistant with expertise in development and "
            "nutrition for children aged 3 months to 10 years. Give practical, "
            "evidence-based advice."
        )
        user = request.question or ""
    return [ChatMessage("system", system), ChatMessage("user", user)]


async def get_advice(gateway: AIGateway, request: AdviceRequest) -> str:
    response = await gateway.chat(build_advice_messages(request))
    return response.content or FALLBACK_ADVICE


def parse_meal_plan(content: str) -> dict[str, Any]:
    """
    Pull the JSON object out of a completion that may wrap it in prose.

    Raises:
        UpstreamFailure: no parseable JSON object in the content
    """
    match = _JSON_OBJECT.search(content or "")
    if not match:
        raise UpstreamFailure(200, content or "", "Failed to parse meal plan response")
    try:
        plan = json.loads(match.group(0))
    except json.JSONDecodeError:
        logger.warning("meal_plan_unparseable")
        raise UpstreamFailure(200, content, "Failed to parse meal plan response")
    if not isinstance(plan, dict):
        raise UpstreamFailure(200, content, "Failed to parse meal plan response")
    return plan


async def generate_meal_plan(gateway: AIGateway, request: MealPlanRequest) -> dict[str, Any]:
    age = format_age(request.age_months)
    preferences = f" Food preferences: {request.preferences}." if request.preferences else ""
    system = (
        "You are a pediatric nutritionist who writes weekly meal plans. "
        f"Plan healthy meals for {request.child_name or 'a child'} aged {age}.{preferences}\n"
        "Respond ONLY with valid JSON shaped like "
        '{"weekPlan": [{"day": str, "meals": {"breakfast": {...}, "lunch": {...}, '
        '"dinner": {...}, "snacks": [...]}}], "tips": [str]} covering 7 days.'
    )
    user = f"Create a weekly meal plan for a child aged {age}.{preferences} Respond in JSON."
    response = await gateway.chat([ChatMessage("system", system), ChatMessage("user", user)])
    return parse_meal_plan(response.content)


async def analyze_symptom_image(gateway: AIGateway, request: SymptomImageRequest) -> str:
    system = (
        "You help parents understand visible symptoms in a photo. Describe "
        "possible conditions, severity (mild/moderate/serious), recommended "
        "actions and when to see a doctor. This is not a diagnosis; always "
        "recommend a doctor for serious conditions."
    )
    user_content = [
        {"type": "text", "text": "Analyze this image for possible health conditions."},
        {"type": "image_url", "image_url": {"url": request.image_base64}},
    ]
    response = await gateway.chat(
        [ChatMessage("system", system), ChatMessage("user", user_content)]
    )
    if not response.content:
        raise UpstreamFailure(200, "", "No analysis returned")
    return response.content


async def chat(gateway: AIGateway, request: ChatRequest) -> str:
    messages = [
        ChatMessage(
            "system",
            "You are a friendly, professional child health assistant.",
        )
    ]
    messages.extend(ChatMessage(turn.role, turn.content) for turn in request.history)
    messages.append(ChatMessage("user", request.message))
    response = await gateway.chat(messages)
    return response.content or FALLBACK_REPLY
