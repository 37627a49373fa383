"""AI assistant router - relays prompts to the AI gateway.

Gateway failures surface through the app-level UpstreamFailure handler
(429 and 402 pass through, anything else becomes 502).
"""

from typing import Any

import httpx
from fastapi import APIRouter, Depends

from growthtrack.core.deps import get_current_user, get_http_client
from growthtrack.db.models import User
from growthtrack.schemas.assistant import (
    AdviceRequest,
    AdviceResponse,
    AnalysisResponse,
    ChatReply,
    ChatRequest,
    MealPlanRequest,
    SymptomImageRequest,
)
from growthtrack.services import assistant_service
from growthtrack.services.ai_gateway import get_gateway

router = APIRouter(prefix="/assistant", tags=["assistant"])


@router.post("/advice", response_model=AdviceResponse)
async def get_advice(
    data: AdviceRequest,
    user: User = Depends(get_current_user),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> AdviceResponse:
    advice = await assistant_service.get_advice(get_gateway(client), data)
    return AdviceResponse(advice=advice)


@router.post("/meal-plan")
async def generate_meal_plan(
    data: MealPlanRequest,
    user: User = Depends(get_current_user),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> dict[str, Any]:
    return await assistant_service.generate_meal_plan(get_gateway(client), data)


@router.post("/analyze-symptoms", response_model=AnalysisResponse)
async def analyze_symptoms(
    data: SymptomImageRequest,
    user: User = Depends(get_current_user),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> AnalysisResponse:
    analysis = await assistant_service.analyze_symptom_image(get_gateway(client), data)
    return AnalysisResponse(analysis=analysis)


@router.post("/chat", response_model=ChatReply)
async def chat(
    data: ChatRequest,
    user: User = Depends(get_current_user),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> ChatReply:
    reply = await assistant_service.chat(get_gateway(client), data)
    return ChatReply(reply=reply)
