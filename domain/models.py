from datetime import datetime
from enum import Enum
from typing import Any
import uuid

import markdown2  # pyright: ignore[reportMissingTypeStubs]


def new_id() -> str:
    return uuid.uuid4().hex


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _lines(value: Any) -> str:
    if isinstance(value, list):
        return "\n".join(_text(v) for v in value if _text(v))
    return _text(value)


class Recipe:
    def __init__(
        self,
        *,
        id: str,
        title: str,
        prep_time: str = "",
        cook_time: str = "",
        ingredients: list[str] | None = None,
        instructions: str = "",
        description: str = "",
    ) -> None:
        self.id = id
        self.title = title
        self.prep_time = prep_time
        self.cook_time = cook_time
        self.ingredients = [] if ingredients is None else ingredients
        self.instructions = instructions
        self.description = description

    def __repr__(self) -> str:
        return f"<Recipe(id={self.id}, title={self.title})>"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Recipe):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, id: str | None = None) -> "Recipe":
        """Build from a wire dict, tolerating the loose shapes the LLM sends back.

        Times may be numbers, ingredients may be a single string and
        instructions may be a list of steps.
        """
        ingredients = data.get("ingredients") or []
        if not isinstance(ingredients, list):
            ingredients = [ingredients]
        return cls(
            id=(_text(data.get("id")) or new_id()) if id is None else id,
            title=_text(data.get("title")),
            prep_time=_text(data.get("prepTime")),
            cook_time=_text(data.get("cookTime")),
            ingredients=[_text(i) for i in ingredients if _text(i)],
            instructions=_lines(data.get("instructions")),
            description=_text(data.get("description")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "prepTime": self.prep_time,
            "cookTime": self.cook_time,
            "ingredients": list(self.ingredients),
            "instructions": self.instructions,
            "description": self.description,
        }

    @property
    def html(self) -> str:
        return markdown2.markdown(  # pyright: ignore[reportUnknownVariableType, reportUnknownMemberType]
            self.instructions
        )


class SubscriptionStatus(Enum):
    trial = "trial"
    weekly = "weekly"
    monthly = "monthly"
    yearly = "yearly"


class Profile:
    def __init__(
        self,
        *,
        id: str,
        email: str,
        full_name: str | None,
        subscription_status: SubscriptionStatus,
        trial_end_date: datetime | None,
        created_at: datetime,
        updated_at: datetime,
    ) -> None:
        self.id = id
        self.email = email
        self.full_name = full_name
        self.subscription_status = subscription_status
        self.trial_end_date = trial_end_date
        self.created_at = created_at
        self.updated_at = updated_at

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, email={self.email})>"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "subscription_status": self.subscription_status.value,
            "trial_end_date": (
                self.trial_end_date.isoformat() if self.trial_end_date else None
            ),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


class PantryItem:
    def __init__(
        self,
        *,
        id: str,
        user_id: str,
        ingredient_name: str,
        quantity: str = "",
        unit: str = "",
        expiry_date: str | None = None,
        created_at: datetime,
        updated_at: datetime,
    ) -> None:
        self.id = id
        self.user_id = user_id
        self.ingredient_name = ingredient_name
        self.quantity = quantity
        self.unit = unit
        self.expiry_date = expiry_date
        self.created_at = created_at
        self.updated_at = updated_at

    def __repr__(self) -> str:
        return f"<PantryItem(id={self.id}, ingredient_name={self.ingredient_name})>"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "ingredient_name": self.ingredient_name,
            "quantity": self.quantity,
            "unit": self.unit,
            "expiry_date": self.expiry_date,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


class SavedRecipe:
    def __init__(
        self,
        *,
        id: str,
        user_id: str,
        recipe: Recipe,
        created_at: datetime,
        updated_at: datetime,
    ) -> None:
        self.id = id
        self.user_id = user_id
        self.recipe = recipe
        self.created_at = created_at
        self.updated_at = updated_at

    def __repr__(self) -> str:
        return f"<SavedRecipe(id={self.id}, recipe_id={self.recipe.id})>"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "recipe_id": self.recipe.id,
            "recipe_data": self.recipe.to_dict(),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


class Plan:
    def __init__(
        self,
        *,
        name: str,
        price: str,
        period: str,
        featured: bool = False,
        savings: str | None = None,
    ) -> None:
        self.name = name
        self.price = price
        self.period = period
        self.featured = featured
        self.savings = savings

    @property
    def status(self) -> SubscriptionStatus:
        return {
            "week": SubscriptionStatus.weekly,
            "month": SubscriptionStatus.monthly,
            "year": SubscriptionStatus.yearly,
        }[self.period]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "price": self.price,
            "period": self.period,
            "featured": self.featured,
            "savings": self.savings,
        }
