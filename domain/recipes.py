"""Turning a list of ingredients into recipe suggestions."""

import json
import logging
import re
from typing import Any, Protocol

import httpx

from domain.agemini import GeminiError
from domain.models import Recipe, new_id
from domain.prompts import GenerateRecipesPrompt


logger = logging.getLogger(__name__)


CODE_FENCE = re.compile(r"```json|```")


FALLBACK_RECIPES: tuple[dict[str, Any], ...] = (
    {
        "title": "Vegetable Stir Fry",
        "prepTime": "15 mins",
        "cookTime": "10 mins",
        "ingredients": ["bell pepper", "carrot", "onion", "soy sauce"],
        "instructions": (
            "1. Chop all vegetables\n"
            "2. Heat oil in pan\n"
            "3. Stir fry vegetables for 5 mins\n"
            "4. Add soy sauce and cook for 2 more mins"
        ),
        "description": (
            "A quick and healthy vegetable stir fry with a savory soy sauce flavor."
        ),
    },
    {
        "title": "Pasta Primavera",
        "prepTime": "10 mins",
        "cookTime": "15 mins",
        "ingredients": ["pasta", "tomato", "garlic", "basil"],
        "instructions": (
            "1. Cook pasta\n"
            "2. Saute garlic and tomatoes\n"
            "3. Combine with pasta\n"
            "4. Garnish with basil"
        ),
        "description": "Simple pasta dish with fresh tomatoes and aromatic basil.",
    },
)


class InvalidIngredients(ValueError):
    pass


class RecipeParseError(ValueError):
    pass


class RecipeGenerationError(Exception):
    pass


class TextGenerator(Protocol):
    async def generate_content(self, prompt: str) -> str:
        ...


def normalise_ingredients(ingredients: Any) -> list[str]:
    if not isinstance(ingredients, list) or not ingredients:
        raise InvalidIngredients("Ingredients array is required")
    if not all(isinstance(i, str) for i in ingredients):
        raise InvalidIngredients("Ingredients must be strings")

    seen: set[str] = set()
    cleaned: list[str] = []
    for ingredient in ingredients:
        ingredient = ingredient.strip()
        if ingredient and ingredient not in seen:
            seen.add(ingredient)
            cleaned.append(ingredient)

    if not cleaned:
        raise InvalidIngredients("Ingredients array is required")
    return cleaned


def strip_code_fences(text: str) -> str:
    return CODE_FENCE.sub("", text).strip()


def parse_recipes(text: str) -> list[Recipe]:
    """Parse the model reply into recipes, each with a freshly minted id.

    The model is asked for a JSON array but tends to wrap it in a markdown
    code fence, so fences are removed first wherever they appear.
    """
    try:
        data = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise RecipeParseError(f"Reply is not JSON: {e}") from e

    if not isinstance(data, list):
        raise RecipeParseError("Reply is not a JSON array.")
    if not all(isinstance(r, dict) for r in data):
        raise RecipeParseError("Reply contains non-object recipes.")

    return [Recipe.from_dict(r, id=new_id()) for r in data]


def fallback_recipes() -> list[Recipe]:
    return [Recipe.from_dict(r, id=new_id()) for r in FALLBACK_RECIPES]


class Suggestion:
    def __init__(self, recipes: list[Recipe], *, fallback: bool = False) -> None:
        self.recipes = recipes
        self.fallback = fallback

    def to_dict(self) -> dict[str, Any]:
        return {
            "recipes": [r.to_dict() for r in self.recipes],
            "fallback": self.fallback,
        }


class RecipeGenerator:
    def __init__(
        self,
        client: TextGenerator,
        *,
        n: int = 5,
        fallback_on_error: bool = True,
    ) -> None:
        self.client = client
        self.n = n
        self.fallback_on_error = fallback_on_error

    async def generate(self, ingredients: list[str]) -> list[Recipe]:
        prompt = GenerateRecipesPrompt(ingredients, n=self.n)
        try:
            text = await self.client.generate_content(str(prompt))
            return parse_recipes(text)
        except (GeminiError, RecipeParseError, httpx.HTTPError) as e:
            raise RecipeGenerationError(str(e)) from e

    async def suggest(self, ingredients: list[str]) -> Suggestion:
        try:
            recipes = await self.generate(ingredients)
        except RecipeGenerationError:
            if not self.fallback_on_error:
                raise
            logger.exception("Error generating recipes, serving fallback.")
            return Suggestion(fallback_recipes(), fallback=True)
        logger.info("Generated %d recipes for %s", len(recipes), ingredients)
        return Suggestion(recipes)
