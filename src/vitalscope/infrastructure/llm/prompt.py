"""
infrastructure.llm.prompt - Prompt construction for product analysis.

The system prompt carries the user's profile and the analysis rules; the
human message carries every image (in Selection order) followed by one
instruction text part.
"""

from __future__ import annotations

from typing import Sequence

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from vitalscope.domain.models import EncodedImage, Profile

ANALYZE_INSTRUCTION = (
    "Analyze the product in these images. If there is no nutrition label, "
    "identify the product and estimate typical values for it."
)


def build_system_prompt(
    profile: Profile,
    format_instructions: str,
    response_language: str = "English",
) -> str:
    """Build the system prompt for one analysis request.

    Args:
        profile:             The configured user profile.
        format_instructions: JSON schema instructions from the output parser.
        response_language:   Language for every human-readable field.

    Returns:
        The system prompt string.
    """
    return f"""You are an experienced healthcare advisor.
Analyze the product images the user provides (nutrition labels or packaging)
together with the user's profile, and evaluate the product's impact on this
user's health.

USER PROFILE:
- Age: {profile.age}
- Gender: {profile.gender.value}
- Health condition / concerns / context: {profile.health_context}

IMAGE RULES:
1. Quality check: if the images are blurry, too dark, or the product cannot be
   identified at all, set imageQualityCheck.isUnclear to true and give the
   reason. The other fields may then be empty.
2. Missing nutrition label: identify the product from its packaging or
   appearance and use typical nutrition values for that kind of product from
   your general knowledge. When you rely on such estimates, say so in
   calorieAnalysis.note and in the summary.

CALORIE RULES:
1. Estimate the user's total daily energy expenditure from the profile and
   the health context (activity level, goals).
2. Compute what percentage of that daily need the product's calories
   represent (from the label, or the typical value).

OUTPUT RULES:
- Write every human-readable field in {response_language}.
- Pros and cons must address the user's stated health context.
- Recommend exactly three alternative products that suit the user better.
- Keep the summary to about 200 characters.
- Respond with a single JSON object and nothing else.

{format_instructions}"""


def build_messages(
    profile: Profile,
    images: Sequence[EncodedImage],
    format_instructions: str,
    response_language: str = "English",
) -> list[BaseMessage]:
    """Build the chat messages: system prompt, then one multimodal human message."""
    content: list[dict] = [
        {"type": "image_url", "image_url": {"url": image.data_uri}}
        for image in images
    ]
    content.append({"type": "text", "text": ANALYZE_INSTRUCTION})
    return [
        SystemMessage(
            content=build_system_prompt(profile, format_instructions, response_language)
        ),
        HumanMessage(content=content),
    ]
