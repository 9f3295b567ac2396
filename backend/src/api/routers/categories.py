"""Category listing endpoint."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import check_rate_limit, get_async_session, get_current_user_id
from schemas.category import CategoryListResponse
from services import transaction_service

router = APIRouter(
    prefix="/categories", tags=["categories"], dependencies=[Depends(check_rate_limit)],
)


@router.get("/", response_model=CategoryListResponse)
async def list_categories(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_async_session),
) -> CategoryListResponse:
    """Get the current user's categories with transaction counts, most used first."""
    categories = await transaction_service.list_category_counts(db, user_id)
    return CategoryListResponse(categories=categories)
