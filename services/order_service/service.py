import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import InvalidRequestError, UpstreamServiceError
from shared.security import AuthenticatedUser
from .models import Order
from .repository import OrderRepository
from .schemas import OrderCreate, OrderItem

logger = structlog.get_logger(__name__)


class OrderService:

    @staticmethod
    def new_pending_order(user: AuthenticatedUser, items: list[OrderItem], **fields) -> Order:
        """Builds an unsaved order owned by ``user`` in the pending state."""
        return Order(
            user_id=user.id,
            user_email=user.email,
            user_name=user.name or user.email,
            items=[item.model_dump() for item in items],
            status="pending",
            **fields,
        )

    @staticmethod
    async def save_new_order(db: AsyncSession, order: Order) -> Order:
        try:
            saved = await OrderRepository.create_order(db, order)
        except SQLAlchemyError as e:
            await db.rollback()
            raise UpstreamServiceError("Failed to create order", details=str(e)) from e

        logger.info("order_created", order_id=saved.id, user_id=saved.user_id, total=saved.total)
        return saved

    @staticmethod
    async def create_order(db: AsyncSession, user: AuthenticatedUser, data: OrderCreate) -> Order:
        if not data.items:
            raise InvalidRequestError("Order must contain at least one item")

        order = OrderService.new_pending_order(
            user,
            data.items,
            subtotal=data.subtotal,
            tax=data.tax,
            total=data.total,
        )
        return await OrderService.save_new_order(db, order)

    @staticmethod
    async def list_orders(db: AsyncSession, user: AuthenticatedUser) -> list[Order]:
        try:
            return await OrderRepository.list_for_user(db, user.id)
        except SQLAlchemyError as e:
            raise UpstreamServiceError("Failed to fetch orders", details=str(e)) from e
