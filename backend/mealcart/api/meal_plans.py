import datetime as dt

from fastapi import APIRouter, Query

from mealcart.schemas.plan import MealPlanCreate, MealPlanOut, MealPlanUpdate
from mealcart.storage.db import get_session
from mealcart.storage.models import PlannedMeal
from mealcart.storage.repositories import delete_planned_meal, list_planned_meals, plan_meal, update_meal_servings

router = APIRouter()


def _meal_out(meal: PlannedMeal, created: bool | None = None) -> MealPlanOut:
    return MealPlanOut(
        id=meal.id,
        date=meal.date,
        meal_type=meal.meal_type,
        recipe_id=meal.recipe_id,
        servings=meal.servings,
        created=created,
    )


@router.get("/meal-plans", response_model=list[MealPlanOut])
def get_meal_plans(start: dt.date = Query(...), end: dt.date = Query(...)) -> list[MealPlanOut]:
    with get_session() as session:
        return [_meal_out(m) for m in list_planned_meals(session, start, end)]


@router.post("/meal-plans", response_model=MealPlanOut)
def post_meal_plan(body: MealPlanCreate) -> MealPlanOut:
    """Assign a recipe to a slot. Re-assigning the same recipe to the same slot updates its servings."""
    with get_session() as session:
        meal, created = plan_meal(session, body.date, body.meal_type, body.recipe_id, body.servings)
        return _meal_out(meal, created)


@router.patch("/meal-plans/{meal_id}", response_model=MealPlanOut)
def patch_meal_plan(meal_id: str, body: MealPlanUpdate) -> MealPlanOut:
    with get_session() as session:
        return _meal_out(update_meal_servings(session, meal_id, body.servings))


@router.delete("/meal-plans/{meal_id}")
def remove_meal_plan(meal_id: str) -> dict:
    with get_session() as session:
        delete_planned_meal(session, meal_id)
    return {"ok": True}
