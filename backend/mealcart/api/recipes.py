from fastapi import APIRouter

from mealcart.schemas.recipe import IngredientLineOut, RecipeCreate, RecipeOut
from mealcart.storage.db import get_session
from mealcart.storage.models import Recipe, RecipeIngredient
from mealcart.storage.repositories import (
    create_recipe,
    delete_recipe,
    get_recipe,
    get_recipe_ingredients,
    list_recipes,
)

router = APIRouter()


def _recipe_out(recipe: Recipe, ingredients: list[RecipeIngredient]) -> RecipeOut:
    return RecipeOut(
        id=recipe.id,
        name=recipe.name,
        servings=recipe.servings,
        description=recipe.description,
        prep_time=recipe.prep_time,
        cook_time=recipe.cook_time,
        source_url=recipe.source_url,
        notes=recipe.notes,
        tags=recipe.tags or [],
        created_at=recipe.created_at,
        ingredients=[
            IngredientLineOut(id=i.id, name=i.name, quantity=i.quantity, unit=i.unit, notes=i.notes)
            for i in ingredients
        ],
    )


@router.get("/recipes", response_model=list[RecipeOut])
def get_recipes() -> list[RecipeOut]:
    with get_session() as session:
        recipes = list_recipes(session)
        ingredients = get_recipe_ingredients(session, [r.id for r in recipes])
        return [_recipe_out(r, ingredients.get(r.id, [])) for r in recipes]


@router.post("/recipes", response_model=RecipeOut, status_code=201)
def post_recipe(body: RecipeCreate) -> RecipeOut:
    with get_session() as session:
        recipe = create_recipe(
            session,
            Recipe(
                name=body.name.strip(),
                servings=body.servings,
                description=body.description,
                prep_time=body.prep_time,
                cook_time=body.cook_time,
                source_url=body.source_url,
                notes=body.notes,
                tags=list(body.tags),
            ),
            [
                RecipeIngredient(name=line.name.strip(), quantity=line.quantity, unit=line.unit, notes=line.notes)
                for line in body.ingredients
            ],
        )
        ingredients = get_recipe_ingredients(session, [recipe.id])
        return _recipe_out(recipe, ingredients[recipe.id])


@router.get("/recipes/{recipe_id}", response_model=RecipeOut)
def get_recipe_detail(recipe_id: str) -> RecipeOut:
    with get_session() as session:
        recipe = get_recipe(session, recipe_id)
        ingredients = get_recipe_ingredients(session, [recipe.id])
        return _recipe_out(recipe, ingredients[recipe.id])


@router.delete("/recipes/{recipe_id}")
def remove_recipe(recipe_id: str) -> dict:
    with get_session() as session:
        delete_recipe(session, recipe_id)
    return {"ok": True}
