from __future__ import annotations

import logging

from openai import AsyncOpenAI, OpenAIError

from backend.services.integration import IntegrationNotConfigured
from backend.settings import get_settings

logger = logging.getLogger(__name__)

MAX_TOKENS = 150
TEMPERATURE = 0.8

SYSTEM_PROMPTS = {
    "sweet_message": (
        "You are a romantic AI assistant that creates heartfelt, genuine sweet messages for couples. "
        "Create personalized, loving messages that feel authentic and warm. Keep them between 20-80 words."
    ),
    "mood_suggestion": (
        "You are a relationship wellness AI that provides thoughtful suggestions based on mood patterns. "
        "Be empathetic and constructive."
    ),
    "reminder_suggestion": (
        "You are a relationship coach AI that suggests meaningful romantic gestures and important "
        "relationship activities."
    ),
}


def build_prompts(message_type: str, context: dict | None = None) -> tuple[str, str]:
    context = context or {}
    if message_type not in SYSTEM_PROMPTS:
        raise ValueError(f"Invalid message type: {message_type}")
    if message_type == "sweet_message":
        recent_mood = context.get("recent_mood") or context.get("recentMood")
        if recent_mood:
            user_prompt = (
                f'Create a sweet message for someone whose recent mood was "{recent_mood}". '
                "Make it uplifting and caring."
            )
        else:
            user_prompt = "Create a sweet, romantic message that would make someone feel loved and appreciated."
    elif message_type == "mood_suggestion":
        mood = context.get("mood") or "mixed"
        user_prompt = (
            f'Based on recent mood: "{mood}", suggest a thoughtful activity or message to improve '
            "their relationship wellbeing. Keep it practical and caring."
        )
    else:
        user_prompt = (
            "Suggest a romantic or thoughtful reminder/activity for a couple. Be specific and actionable. "
            "Examples: plan a surprise date, write a heartfelt letter, cook their favorite meal, etc."
        )
    return SYSTEM_PROMPTS[message_type], user_prompt


async def generate_message(message_type: str, context: dict | None = None, user_id: str | None = None) -> str:
    system_prompt, user_prompt = build_prompts(message_type, context)
    settings = get_settings()
    if not settings.openai_api_key:
        raise IntegrationNotConfigured("OpenAI API key not configured")

    logger.info("Generating %s message for user %s", message_type, user_id)
    client = AsyncOpenAI(api_key=settings.openai_api_key)
    try:
        response = await client.chat.completions.create(
            model=settings.openai_model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            max_tokens=MAX_TOKENS,
            temperature=TEMPERATURE,
        )
    except OpenAIError as exc:
        raise RuntimeError(f"OpenAI API error: {exc}") from exc
    content = (response.choices[0].message.content or "").strip()
    if not content:
        raise RuntimeError("OpenAI API returned an empty message")
    return content
