import contextlib
import functools
import logging
from typing import Any, AsyncIterator, Awaitable, Callable

from databases import Database
from jinja2 import Environment, FileSystemLoader, select_autoescape
from rich.logging import RichHandler
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse
from starlette.routing import Route

from app import config
from domain.agemini import GeminiClient
from domain.models import Profile, Recipe
from domain.recipes import (
    InvalidIngredients,
    RecipeGenerationError,
    RecipeGenerator,
    normalise_ingredients,
)
from domain.repository import (
    PantryItemNotFound,
    PantryRepository,
    ProfileNotFound,
    ProfileRepository,
    SavedRecipeNotFound,
    SavedRecipeRepository,
    create_tables,
)
from domain.services import EmptyPantry, suggest_from_pantry, toggle_saved
from domain.subscriptions import (
    FEATURES,
    PLANS,
    UnknownPlan,
    in_trial_period,
    remaining_trial_days,
    subscribe,
)


CONFIG = config.Config()


USER_HEADER = "X-User-Id"


logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
    )


def templates(html_dir: Any) -> Environment:
    return Environment(
        loader=FileSystemLoader(html_dir),
        autoescape=select_autoescape(),
    )


def aJSONResponse(route: Callable[..., Awaitable[Any]]):
    @functools.wraps(route)
    async def wrapper(*args: Any, **kwargs: Any) -> JSONResponse:
        resp = await route(*args, **kwargs)
        if not isinstance(resp, tuple):
            data, code = resp, 200
        else:
            data, code = resp
        return JSONResponse(data, status_code=code)

    return wrapper


async def json_body(request: Request) -> dict[str, Any]:
    try:
        data = await request.json()
    except ValueError:
        raise HTTPException(400, "Request body must be JSON.")
    if not isinstance(data, dict):
        raise HTTPException(400, "Request body must be a JSON object.")
    return data


def user_id(request: Request) -> str:
    uid = request.headers.get(USER_HEADER, "").strip()
    if not uid:
        raise HTTPException(401, "Not signed in.")
    return uid


async def current_profile(request: Request) -> Profile:
    return await ProfileRepository(request.app.state.db).get(user_id(request))


def profile_dict(profile: Profile) -> dict[str, Any]:
    return {
        **profile.to_dict(),
        "in_trial": in_trial_period(profile),
        "trial_days_remaining": remaining_trial_days(profile),
    }


# JSON api


@aJSONResponse
async def ping(request: Request) -> dict[str, Any]:
    return {"message": "Server is running!"}


@aJSONResponse
async def generate_recipes(request: Request) -> dict[str, Any]:
    body = await json_body(request)
    ingredients = normalise_ingredients(body.get("ingredients"))
    generator: RecipeGenerator = request.app.state.generator
    suggestion = await generator.suggest(ingredients)
    return suggestion.to_dict()


@aJSONResponse
async def plans(request: Request) -> dict[str, Any]:
    return {"plans": [p.to_dict() for p in PLANS], "features": list(FEATURES)}


@aJSONResponse
async def create_profile(request: Request) -> tuple[dict[str, Any], int]:
    body = await json_body(request)
    email = body.get("email")
    if not isinstance(email, str) or "@" not in email:
        raise HTTPException(400, "A valid email is required.")
    full_name = body.get("full_name")
    profile = await ProfileRepository(request.app.state.db).create(
        email=email.strip(),
        full_name=full_name.strip() if isinstance(full_name, str) else None,
        trial_days=request.app.state.config.trial_days,
    )
    logger.info("Created profile %s", profile.id)
    return profile_dict(profile), 201


async def profile(request: Request) -> JSONResponse:
    match request.method.lower():
        case "get":
            return JSONResponse(profile_dict(await current_profile(request)))
        case "patch":
            current = await current_profile(request)
            body = await json_body(request)
            if "full_name" in body:
                full_name = body["full_name"]
                if full_name is not None and not isinstance(full_name, str):
                    raise HTTPException(400, "Full name must be a string.")
                current.full_name = full_name.strip() if full_name else None
            if "email" in body:
                if not isinstance(body["email"], str) or "@" not in body["email"]:
                    raise HTTPException(400, "A valid email is required.")
                current.email = body["email"].strip()
            updated = await ProfileRepository(request.app.state.db).update(current)
            return JSONResponse(profile_dict(updated))
        case _:
            raise HTTPException(405)


@aJSONResponse
async def subscribe_to_plan(request: Request) -> dict[str, Any]:
    current = await current_profile(request)
    body = await json_body(request)
    plan = body.get("plan")
    if not isinstance(plan, str):
        raise HTTPException(400, "A plan name is required.")
    subscribe(current, plan)
    updated = await ProfileRepository(request.app.state.db).update(current)
    logger.info("Profile %s subscribed to %s", updated.id, plan)
    return profile_dict(updated)


async def pantry(request: Request) -> JSONResponse:
    current = await current_profile(request)
    repo = PantryRepository(request.app.state.db)
    match request.method.lower():
        case "get":
            items = await repo.list(current.id)
            return JSONResponse({"items": [i.to_dict() for i in items]})
        case "post":
            body = await json_body(request)
            name = body.get("ingredient_name")
            if not isinstance(name, str) or not name.strip():
                raise HTTPException(400, "An ingredient name is required.")
            expiry = body.get("expiry_date")
            item = await repo.add(
                current.id,
                ingredient_name=name.strip(),
                quantity=str(body.get("quantity") or ""),
                unit=str(body.get("unit") or ""),
                expiry_date=str(expiry) if expiry else None,
            )
            return JSONResponse(item.to_dict(), status_code=201)
        case _:
            raise HTTPException(405)


@aJSONResponse
async def remove_pantry_item(request: Request) -> dict[str, Any]:
    current = await current_profile(request)
    id = request.path_params["id"]
    await PantryRepository(request.app.state.db).remove(current.id, id)
    return {"removed": id}


@aJSONResponse
async def generate_from_pantry(request: Request) -> dict[str, Any]:
    current = await current_profile(request)
    suggestion = await suggest_from_pantry(
        current.id,
        pantry=PantryRepository(request.app.state.db),
        generator=request.app.state.generator,
    )
    return suggestion.to_dict()


def recipe_from_body(body: dict[str, Any]) -> Recipe:
    data = body.get("recipe")
    if not isinstance(data, dict) or not data.get("id") or not data.get("title"):
        raise HTTPException(400, "A recipe with an id and title is required.")
    return Recipe.from_dict(data)


async def saved_recipes(request: Request) -> JSONResponse:
    current = await current_profile(request)
    repo = SavedRecipeRepository(request.app.state.db)
    match request.method.lower():
        case "get":
            saved = await repo.list(current.id)
            return JSONResponse({"recipes": [s.to_dict() for s in saved]})
        case "post":
            recipe = recipe_from_body(await json_body(request))
            saved = await repo.save(current.id, recipe)
            return JSONResponse(saved.to_dict(), status_code=201)
        case _:
            raise HTTPException(405)


@aJSONResponse
async def toggle_saved_recipe(request: Request) -> dict[str, Any]:
    current = await current_profile(request)
    recipe = recipe_from_body(await json_body(request))
    is_saved = await toggle_saved(
        current.id, recipe, saved=SavedRecipeRepository(request.app.state.db)
    )
    return {"recipe_id": recipe.id, "saved": is_saved}


@aJSONResponse
async def remove_saved_recipe(request: Request) -> dict[str, Any]:
    current = await current_profile(request)
    recipe_id = request.path_params["recipe_id"]
    await SavedRecipeRepository(request.app.state.db).remove(current.id, recipe_id)
    return {"removed": recipe_id}


# html


async def homepage(request: Request) -> HTMLResponse:
    env: Environment = request.app.state.templates
    return HTMLResponse(env.get_template("index.html").render())


async def recipes(request: Request) -> HTMLResponse:
    env: Environment = request.app.state.templates
    async with request.form() as form:
        raw = str(form.get("ingredients", ""))
    try:
        ingredients = normalise_ingredients(raw.split(","))
    except InvalidIngredients as e:
        return HTMLResponse(
            env.get_template("index.html").render(error=str(e), ingredients=raw),
            status_code=400,
        )
    generator: RecipeGenerator = request.app.state.generator
    try:
        suggestion = await generator.suggest(ingredients)
    except RecipeGenerationError as e:
        logger.error("Error generating recipes: %r", e)
        return HTMLResponse(
            env.get_template("index.html").render(
                error="Failed to generate recipes", ingredients=raw
            ),
            status_code=500,
        )
    return HTMLResponse(
        env.get_template("recipe-list.html").render(
            ingredients=ingredients,
            recipes=suggestion.recipes,
            fallback=suggestion.fallback,
        )
    )


# errors


def error_handler(code: int, message: str | None = None):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse({"error": message or str(exc)}, status_code=code)

    return handler


async def http_exception(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, HTTPException)
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code)


async def generation_failed(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Error generating recipes: %r", exc)
    return JSONResponse({"error": "Failed to generate recipes"}, status_code=500)


EXCEPTION_HANDLERS = {
    HTTPException: http_exception,
    InvalidIngredients: error_handler(400),
    UnknownPlan: error_handler(400, "Unknown plan."),
    EmptyPantry: error_handler(400),
    ProfileNotFound: error_handler(404, "Profile not found."),
    PantryItemNotFound: error_handler(404, "Pantry item not found."),
    SavedRecipeNotFound: error_handler(404, "Saved recipe not found."),
    RecipeGenerationError: generation_failed,
}


@contextlib.asynccontextmanager
async def lifespan(app: Starlette) -> AsyncIterator[None]:
    db: Database = app.state.db
    await db.connect()
    await create_tables(db)
    logger.info("Connected to %s", db.url.obscure_password)
    yield
    await db.disconnect()
    await app.state.llm.aclose()


def build_app(
    cfg: config.Config,
    *,
    llm: GeminiClient | None = None,
    db: Database | None = None,
) -> Starlette:
    llm = (
        GeminiClient(
            model=cfg.gemini_model,
            token=cfg.gemini_api_key,
            base_url=cfg.gemini_base_url,
            timeout=cfg.gemini_timeout,
        )
        if llm is None
        else llm
    )

    app = Starlette(
        debug=True if cfg.env == config.Env.local else False,
        routes=[
            Route("/", homepage),
            Route("/recipes", recipes, methods=["POST"]),
            Route("/api/test", ping),
            Route("/api/generate-recipes", generate_recipes, methods=["POST"]),
            Route("/api/plans", plans),
            Route("/api/profiles", create_profile, methods=["POST"]),
            Route("/api/profile", profile, methods=["GET", "PATCH"]),
            Route("/api/subscribe", subscribe_to_plan, methods=["POST"]),
            Route("/api/pantry", pantry, methods=["GET", "POST"]),
            Route(
                "/api/pantry/generate-recipes",
                generate_from_pantry,
                methods=["POST"],
            ),
            Route("/api/pantry/{id}", remove_pantry_item, methods=["DELETE"]),
            Route("/api/saved-recipes", saved_recipes, methods=["GET", "POST"]),
            Route(
                "/api/saved-recipes/toggle",
                toggle_saved_recipe,
                methods=["POST"],
            ),
            Route(
                "/api/saved-recipes/{recipe_id}",
                remove_saved_recipe,
                methods=["DELETE"],
            ),
        ],
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=cfg.cors_origins,
                allow_methods=["*"],
                allow_headers=["*"],
            )
        ],
        exception_handlers=EXCEPTION_HANDLERS,  # pyright: ignore[reportArgumentType]
        lifespan=lifespan,
    )

    app.state.config = cfg
    app.state.llm = llm
    app.state.generator = RecipeGenerator(
        llm,
        n=cfg.recipes_per_request,
        fallback_on_error=cfg.fallback_on_error,
    )
    app.state.db = Database(cfg.db_url) if db is None else db
    app.state.templates = templates(cfg.html_dir)
    return app


app = build_app(CONFIG)
