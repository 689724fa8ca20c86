from domain.models import Recipe
from domain.recipes import RecipeGenerator, Suggestion
from domain.repository import PantryRepository, SavedRecipeRepository


class EmptyPantry(ValueError):
    pass


async def suggest_from_pantry(
    user_id: str,
    *,
    pantry: PantryRepository,
    generator: RecipeGenerator,
) -> Suggestion:
    names = await pantry.ingredient_names(user_id)
    ingredients = list(dict.fromkeys(n.strip() for n in names if n.strip()))
    if not ingredients:
        raise EmptyPantry("Add some ingredients to your pantry first.")
    return await generator.suggest(ingredients)


async def toggle_saved(
    user_id: str,
    recipe: Recipe,
    *,
    saved: SavedRecipeRepository,
) -> bool:
    if await saved.is_saved(user_id, recipe.id):
        await saved.remove(user_id, recipe.id)
        return False
    await saved.save(user_id, recipe)
    return True
