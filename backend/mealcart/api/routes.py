from fastapi import APIRouter

from mealcart.api.health import router as health_router
from mealcart.api.meal_plans import router as meal_plans_router
from mealcart.api.quick_lists import router as quick_lists_router
from mealcart.api.recipes import router as recipes_router
from mealcart.api.shopping import router as shopping_router

router = APIRouter(prefix="/api")
router.include_router(health_router)
router.include_router(recipes_router)
router.include_router(meal_plans_router)
router.include_router(shopping_router)
router.include_router(quick_lists_router)
