GENERATE_RECIPES_PROMPT = """
Generate {n} simple recipes using these ingredients: {ingredients}.
For each recipe, provide:
1. Title
2. Prep time (in minutes)
3. Cook time (in minutes)
4. List of ingredients (including the ones provided)
5. Step-by-step instructions
6. A short description of what the dish is

Format as JSON array with these keys: id, title, prepTime, cookTime, ingredients, instructions, description
""".strip()


class GenerateRecipesPrompt:
    def __init__(
        self,
        ingredients: list[str],
        *,
        n: int = 5,
        content: str | None = None,
    ) -> None:
        self.ingredients = ingredients
        self.n = n
        self.content = GENERATE_RECIPES_PROMPT if content is None else content

    def __str__(self) -> str:
        return self.content.format(n=self.n, ingredients=", ".join(self.ingredients))
