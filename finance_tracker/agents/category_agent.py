"""
AI Category Suggestion Agent

DESIGN DECISION: The LLM is an opaque text-in/list-out classifier.
It receives an expense description and returns candidate category
names. Nothing it returns is stored: the user picks (or ignores)
a suggestion and the record goes through normal validation.

BOUNDARIES:
- CAN: Suggest category names for an expense description
- CANNOT: Write to the store
- MUST: Fail loudly (CategorySuggestionError) rather than invent a default

No retry policy: a failed suggestion is cheap to ask for again.
"""

import json
from typing import Optional

import google.generativeai as genai
from pydantic import BaseModel, Field, ValidationError

from finance_tracker.audit.logger import get_logger
from finance_tracker.config import GeminiSettings, get_settings


logger = get_logger(__name__)

PROMPT_TEMPLATE = """You are an expert financial advisor. Given the following description of an expense, suggest a list of relevant financial categories that could be used to classify it.

Description: {description}

Respond with ONLY a JSON object in this exact format:
{{"categories": ["Category One", "Category Two"]}}

Use short, title-cased category names (e.g. "Office Supplies", "Travel", "Meals").
Most relevant category first."""


class CategorySuggestionError(Exception):
    """The suggestion service failed or returned something unusable."""
    pass


class CategorySuggestionRequest(BaseModel):
    """Input to the suggestion service."""

    description: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="The description of the expense to classify"
    )


class CategorySuggestions(BaseModel):
    """Output of the suggestion service."""

    categories: list[str] = Field(
        default_factory=list,
        description="Suggested categories, most relevant first"
    )


def normalize_categories(raw: list, limit: int) -> list[str]:
    """Strip, drop blanks and duplicates (case-insensitive), keep order."""
    seen = set()
    categories = []
    for item in raw:
        if not isinstance(item, str):
            continue
        name = item.strip()
        key = name.lower()
        if not name or key in seen:
            continue
        seen.add(key)
        categories.append(name)
        if len(categories) >= limit:
            break
    return categories


def parse_suggestions(text: str) -> list:
    """Find the JSON object in a model response and return its categories."""
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        raise CategorySuggestionError("Model response contained no JSON object")

    try:
        data = json.loads(text[start:end])
    except json.JSONDecodeError as e:
        raise CategorySuggestionError(f"Model returned malformed JSON: {e}") from e

    categories = data.get("categories") if isinstance(data, dict) else None
    if not isinstance(categories, list):
        raise CategorySuggestionError("Model response has no 'categories' list")
    return categories


class CategorySuggestionAgent:
    """
    Suggests expense categories with Gemini.

    The model can be injected (tests, alternative providers); anything
    with an async generate_content_async(prompt) returning an object
    with a .text attribute works.
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model=None,
    ):
        self._settings = settings or get_settings().gemini
        self._model = model or self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        return genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    def build_prompt(self, request: CategorySuggestionRequest) -> str:
        return PROMPT_TEMPLATE.format(description=request.description)

    async def suggest_categories(self, description: str) -> CategorySuggestions:
        """
        Suggest categories for an expense description.

        Raises:
            ValueError: If the description is blank
            CategorySuggestionError: If the model call fails or its
                response cannot be used
        """
        try:
            request = CategorySuggestionRequest(description=(description or "").strip())
        except ValidationError as e:
            raise ValueError("Enter a description to get category suggestions") from e

        try:
            response = await self._model.generate_content_async(self.build_prompt(request))
            text = response.text
        except Exception as e:
            logger.warning("category_suggestion_failed", error=str(e))
            raise CategorySuggestionError(f"Category suggestion service failed: {e}") from e

        categories = normalize_categories(
            parse_suggestions(text or ""),
            self._settings.max_suggestions,
        )
        if not categories:
            raise CategorySuggestionError("Model returned no usable categories")

        return CategorySuggestions(categories=categories)
