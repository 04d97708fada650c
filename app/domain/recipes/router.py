"""Recipe router"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import BusinessContext, get_business_context, require_roles
from ...database import get_db
from ...models import Recipe
from .schemas import RecipeCreate, RecipeIngredientResponse, RecipeResponse, RecipeUpdate
from .service import RecipeService

router = APIRouter(prefix="/recipes", tags=["Recipes"])

WRITE_ROLES = ("OWNER", "ADMIN", "EDITOR")


def get_recipe_service(db: Session = Depends(get_db)) -> RecipeService:
    return RecipeService(db)


def to_recipe_response(r: Recipe) -> RecipeResponse:
    return RecipeResponse(
        id=r.id,
        name=r.name,
        productType=r.product_type,
        baseLaborHours=r.base_labor_hours,
        notes=r.notes,
        recipeIngredients=[
            RecipeIngredientResponse(
                id=line.id,
                ingredientId=line.ingredient_id,
                ingredientName=line.ingredient.name if line.ingredient else None,
                quantity=line.quantity,
                unit=line.unit,
            )
            for line in r.ingredients
        ],
        createdAt=r.created_at,
        updatedAt=r.updated_at,
    )


@router.get("", response_model=list[RecipeResponse])
async def list_recipes(
    ctx: BusinessContext = Depends(get_business_context),
    service: RecipeService = Depends(get_recipe_service),
):
    return [to_recipe_response(r) for r in service.list_recipes(ctx.business)]


@router.post("", response_model=RecipeResponse, status_code=201)
async def create_recipe(
    data: RecipeCreate,
    ctx: BusinessContext = Depends(require_roles(*WRITE_ROLES)),
    service: RecipeService = Depends(get_recipe_service),
):
    return to_recipe_response(service.create_recipe(data, ctx.business))


@router.get("/{recipe_id}", response_model=RecipeResponse)
async def get_recipe(
    recipe_id: int,
    ctx: BusinessContext = Depends(get_business_context),
    service: RecipeService = Depends(get_recipe_service),
):
    return to_recipe_response(service.get_recipe(recipe_id, ctx.business))


@router.put("/{recipe_id}", response_model=RecipeResponse)
async def update_recipe(
    recipe_id: int,
    data: RecipeUpdate,
    ctx: BusinessContext = Depends(require_roles(*WRITE_ROLES)),
    service: RecipeService = Depends(get_recipe_service),
):
    return to_recipe_response(service.update_recipe(recipe_id, data, ctx.business))


@router.delete("/{recipe_id}")
async def delete_recipe(
    recipe_id: int,
    ctx: BusinessContext = Depends(require_roles(*WRITE_ROLES)),
    service: RecipeService = Depends(get_recipe_service),
):
    return service.delete_recipe(recipe_id, ctx.business)


__all__ = ["router", "list_recipes", "create_recipe", "get_recipe", "update_recipe", "delete_recipe"]
