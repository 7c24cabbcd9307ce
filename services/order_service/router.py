from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security import AuthenticatedUser, get_current_user
from .schemas import OrderCreate, OrderCreatedResponse, OrderListResponse
from .service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.get("", response_model=OrderListResponse)
async def list_orders(
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    orders = await OrderService.list_orders(db, user)
    return {"orders": orders}


@router.post("", response_model=OrderCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderService.create_order(db, user, payload)
    return {"message": "Order placed successfully!", "order": order}
