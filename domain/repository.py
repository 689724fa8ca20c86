from __future__ import annotations

from datetime import datetime, timedelta, timezone
import json
from typing import Any

from databases import Database
from databases.interfaces import Record

from domain.models import (
    PantryItem,
    Profile,
    Recipe,
    SavedRecipe,
    SubscriptionStatus,
    new_id,
)


CREATE_TABLES = (
    """
    CREATE TABLE IF NOT EXISTS Profiles (
        id VARCHAR(64) PRIMARY KEY,
        email VARCHAR(256) NOT NULL,
        full_name VARCHAR(256),
        subscription_status VARCHAR(16) NOT NULL,
        trial_end_date VARCHAR(64),
        created_at VARCHAR(64) NOT NULL,
        updated_at VARCHAR(64) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS PantryItems (
        id VARCHAR(64) PRIMARY KEY,
        user_id VARCHAR(64) NOT NULL,
        ingredient_name VARCHAR(256) NOT NULL,
        quantity VARCHAR(64),
        unit VARCHAR(64),
        expiry_date VARCHAR(64),
        created_at VARCHAR(64) NOT NULL,
        updated_at VARCHAR(64) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS SavedRecipes (
        id VARCHAR(64) PRIMARY KEY,
        user_id VARCHAR(64) NOT NULL,
        recipe_id VARCHAR(64) NOT NULL,
        recipe_data TEXT NOT NULL,
        created_at VARCHAR(64) NOT NULL,
        updated_at VARCHAR(64) NOT NULL,
        UNIQUE (user_id, recipe_id)
    )
    """,
)


CREATE_PROFILE = """
INSERT INTO Profiles(id, email, full_name, subscription_status, trial_end_date, created_at, updated_at)
VALUES (:id, :email, :full_name, :subscription_status, :trial_end_date, :created_at, :updated_at)
"""

GET_PROFILE = "SELECT * FROM Profiles WHERE id = :id"

UPDATE_PROFILE = """
UPDATE Profiles SET email = :email, full_name = :full_name,
subscription_status = :subscription_status, trial_end_date = :trial_end_date,
updated_at = :updated_at
WHERE id = :id
"""

DELETE_PROFILE = "DELETE FROM Profiles WHERE id = :id"


CREATE_PANTRY_ITEM = """
INSERT INTO PantryItems(id, user_id, ingredient_name, quantity, unit, expiry_date, created_at, updated_at)
VALUES (:id, :user_id, :ingredient_name, :quantity, :unit, :expiry_date, :created_at, :updated_at)
"""

GET_PANTRY_ITEM = "SELECT * FROM PantryItems WHERE user_id = :user_id AND id = :id"

LIST_PANTRY_ITEMS = (
    "SELECT * FROM PantryItems WHERE user_id = :user_id ORDER BY created_at, rowid"
)

DELETE_PANTRY_ITEM = "DELETE FROM PantryItems WHERE user_id = :user_id AND id = :id"


CREATE_SAVED_RECIPE = """
INSERT INTO SavedRecipes(id, user_id, recipe_id, recipe_data, created_at, updated_at)
VALUES (:id, :user_id, :recipe_id, :recipe_data, :created_at, :updated_at)
"""

GET_SAVED_RECIPE = (
    "SELECT * FROM SavedRecipes WHERE user_id = :user_id AND recipe_id = :recipe_id"
)

LIST_SAVED_RECIPES = (
    "SELECT * FROM SavedRecipes WHERE user_id = :user_id ORDER BY created_at, rowid"
)

DELETE_SAVED_RECIPE = (
    "DELETE FROM SavedRecipes WHERE user_id = :user_id AND recipe_id = :recipe_id"
)


class ProfileNotFound(Exception):
    pass


class PantryItemNotFound(Exception):
    pass


class SavedRecipeNotFound(Exception):
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


async def create_tables(db: Database) -> None:
    for query in CREATE_TABLES:
        await db.execute(query=query)  # pyright: ignore[reportUnknownMemberType]


def profile_from_record(r: Record) -> Profile:
    return Profile(
        id=r["id"],
        email=r["email"],
        full_name=r["full_name"],
        subscription_status=SubscriptionStatus(r["subscription_status"]),
        trial_end_date=_dt(r["trial_end_date"]),
        created_at=datetime.fromisoformat(r["created_at"]),
        updated_at=datetime.fromisoformat(r["updated_at"]),
    )


def pantry_item_from_record(r: Record) -> PantryItem:
    return PantryItem(
        id=r["id"],
        user_id=r["user_id"],
        ingredient_name=r["ingredient_name"],
        quantity=r["quantity"] or "",
        unit=r["unit"] or "",
        expiry_date=r["expiry_date"],
        created_at=datetime.fromisoformat(r["created_at"]),
        updated_at=datetime.fromisoformat(r["updated_at"]),
    )


def saved_recipe_from_record(r: Record) -> SavedRecipe:
    data = json.loads(r["recipe_data"])
    return SavedRecipe(
        id=r["id"],
        user_id=r["user_id"],
        recipe=Recipe.from_dict(data, id=r["recipe_id"]),
        created_at=datetime.fromisoformat(r["created_at"]),
        updated_at=datetime.fromisoformat(r["updated_at"]),
    )


class ProfileRepository:
    """Profiles repository."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def create(
        self,
        *,
        email: str,
        full_name: str | None = None,
        trial_days: int = 7,
    ) -> Profile:
        now = utcnow()
        profile = Profile(
            id=new_id(),
            email=email,
            full_name=full_name,
            subscription_status=SubscriptionStatus.trial,
            trial_end_date=now + timedelta(days=trial_days),
            created_at=now,
            updated_at=now,
        )
        await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
            CREATE_PROFILE, values=self._values(profile)
        )
        return profile

    async def get(self, id: str) -> Profile:
        result = await self.db.fetch_one(  # pyright: ignore[reportUnknownMemberType]
            GET_PROFILE, values={"id": id}
        )
        if result is None:
            raise ProfileNotFound(id)
        return profile_from_record(result)

    async def update(self, profile: Profile) -> Profile:
        await self.get(profile.id)
        profile.updated_at = utcnow()
        values = self._values(profile)
        del values["created_at"]
        await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
            UPDATE_PROFILE, values=values
        )
        return profile

    async def delete(self, id: str) -> None:
        await self.get(id)
        async with self.db.transaction():
            await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                "DELETE FROM PantryItems WHERE user_id = :id", values={"id": id}
            )
            await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                "DELETE FROM SavedRecipes WHERE user_id = :id", values={"id": id}
            )
            await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                DELETE_PROFILE, values={"id": id}
            )

    @staticmethod
    def _values(profile: Profile) -> dict[str, Any]:
        return {
            "id": profile.id,
            "email": profile.email,
            "full_name": profile.full_name,
            "subscription_status": profile.subscription_status.value,
            "trial_end_date": (
                profile.trial_end_date.isoformat() if profile.trial_end_date else None
            ),
            "created_at": profile.created_at.isoformat(),
            "updated_at": profile.updated_at.isoformat(),
        }


class PantryRepository:
    """A user's pantry of ingredients."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def add(
        self,
        user_id: str,
        *,
        ingredient_name: str,
        quantity: str = "",
        unit: str = "",
        expiry_date: str | None = None,
    ) -> PantryItem:
        now = utcnow()
        item = PantryItem(
            id=new_id(),
            user_id=user_id,
            ingredient_name=ingredient_name,
            quantity=quantity,
            unit=unit,
            expiry_date=expiry_date,
            created_at=now,
            updated_at=now,
        )
        await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
            CREATE_PANTRY_ITEM,
            values={
                "id": item.id,
                "user_id": user_id,
                "ingredient_name": ingredient_name,
                "quantity": quantity,
                "unit": unit,
                "expiry_date": expiry_date,
                "created_at": now.isoformat(),
                "updated_at": now.isoformat(),
            },
        )
        return item

    async def get(self, user_id: str, id: str) -> PantryItem:
        result = await self.db.fetch_one(  # pyright: ignore[reportUnknownMemberType]
            GET_PANTRY_ITEM, values={"user_id": user_id, "id": id}
        )
        if result is None:
            raise PantryItemNotFound(id)
        return pantry_item_from_record(result)

    async def list(self, user_id: str) -> tuple[PantryItem, ...]:
        result = await self.db.fetch_all(  # pyright: ignore[reportUnknownMemberType]
            LIST_PANTRY_ITEMS, values={"user_id": user_id}
        )
        return tuple(pantry_item_from_record(r) for r in result)

    async def remove(self, user_id: str, id: str) -> None:
        await self.get(user_id, id)
        await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
            DELETE_PANTRY_ITEM, values={"user_id": user_id, "id": id}
        )

    async def ingredient_names(self, user_id: str) -> list[str]:
        return [item.ingredient_name for item in await self.list(user_id)]


class SavedRecipeRepository:
    """Recipes a user has kept, keyed by recipe id."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def save(self, user_id: str, recipe: Recipe) -> SavedRecipe:
        try:
            return await self.get(user_id, recipe.id)
        except SavedRecipeNotFound:
            pass

        now = utcnow()
        saved = SavedRecipe(
            id=new_id(),
            user_id=user_id,
            recipe=recipe,
            created_at=now,
            updated_at=now,
        )
        await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
            CREATE_SAVED_RECIPE,
            values={
                "id": saved.id,
                "user_id": user_id,
                "recipe_id": recipe.id,
                "recipe_data": json.dumps(recipe.to_dict()),
                "created_at": now.isoformat(),
                "updated_at": now.isoformat(),
            },
        )
        return saved

    async def get(self, user_id: str, recipe_id: str) -> SavedRecipe:
        result = await self.db.fetch_one(  # pyright: ignore[reportUnknownMemberType]
            GET_SAVED_RECIPE, values={"user_id": user_id, "recipe_id": recipe_id}
        )
        if result is None:
            raise SavedRecipeNotFound(recipe_id)
        return saved_recipe_from_record(result)

    async def list(self, user_id: str) -> tuple[SavedRecipe, ...]:
        result = await self.db.fetch_all(  # pyright: ignore[reportUnknownMemberType]
            LIST_SAVED_RECIPES, values={"user_id": user_id}
        )
        return tuple(saved_recipe_from_record(r) for r in result)

    async def remove(self, user_id: str, recipe_id: str) -> None:
        await self.get(user_id, recipe_id)
        await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
            DELETE_SAVED_RECIPE, values={"user_id": user_id, "recipe_id": recipe_id}
        )

    async def is_saved(self, user_id: str, recipe_id: str) -> bool:
        try:
            await self.get(user_id, recipe_id)
        except SavedRecipeNotFound:
            return False
        return True
