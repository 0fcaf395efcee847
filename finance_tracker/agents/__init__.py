"""AI Agents package."""

from finance_tracker.agents.category_agent import (
    CategorySuggestionAgent,
    CategorySuggestionError,
    CategorySuggestionRequest,
    CategorySuggestions,
)

__all__ = [
    "CategorySuggestionAgent",
    "CategorySuggestionError",
    "CategorySuggestionRequest",
    "CategorySuggestions",
]
