from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Order


class OrderRepository:

    @staticmethod
    async def create_order(db: AsyncSession, order: Order) -> Order:
        db.add(order)
        await db.commit()
        await db.refresh(order)
        return order

    @staticmethod
    async def get_order(db: AsyncSession, order_id: str) -> Optional[Order]:
        result = await db.execute(select(Order).where(Order.id == order_id))
        return result.scalars().first()

    @staticmethod
    async def get_by_payment_intent(db: AsyncSession, payment_intent_id: str) -> Optional[Order]:
        result = await db.execute(
            select(Order).where(Order.payment_intent_id == payment_intent_id).limit(1)
        )
        return result.scalars().first()

    @staticmethod
    async def list_for_user(db: AsyncSession, user_id: str) -> list[Order]:
        result = await db.execute(
            select(Order).where(Order.user_id == user_id).order_by(Order.created_at.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def update_order(db: AsyncSession, order: Order, **fields) -> Order:
        for name, value in fields.items():
            setattr(order, name, value)

        await db.commit()
        await db.refresh(order)
        return order
