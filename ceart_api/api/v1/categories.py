"""
Event category endpoints.
"""

from fastapi import APIRouter, Depends, status, Path
from starlette.concurrency import run_in_threadpool

from ceart_api.api.dependencies import get_category_service
from ceart_api.schemas.common import CategoryCreate, CategoryListResponse
from ceart_api.services.category_service import CategoryService

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=CategoryListResponse)
async def list_categories(service: CategoryService = Depends(get_category_service)):
    categories = await run_in_threadpool(service.get_categories)
    return CategoryListResponse(categories=categories)


@router.post("", response_model=CategoryListResponse, status_code=status.HTTP_201_CREATED)
async def add_category(category: CategoryCreate, service: CategoryService = Depends(get_category_service)):
    categories = await run_in_threadpool(service.add_category, category.name)
    return CategoryListResponse(categories=categories)


@router.delete("/{name}", response_model=CategoryListResponse)
async def remove_category(
    name: str = Path(..., min_length=1, description="Category name"),
    service: CategoryService = Depends(get_category_service),
):
    categories = await run_in_threadpool(service.remove_category, name)
    return CategoryListResponse(categories=categories)
