# storefront/repos/order_repo.py
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_history import OrderHistoryModel
from storefront.domain.enums import OrderStatus, PaymentStatus


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_order_for_update(self, order_id: int) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def get_by_number(self, order_number: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(OrderModel.order_number == order_number)
        ).scalar_one_or_none()

    def order_number_exists(self, order_number: str) -> bool:
        return self.db.execute(
            select(OrderModel.id).where(OrderModel.order_number == order_number)
        ).first() is not None

    def count_numbers_with_prefix(self, prefix: str) -> int:
        return self.db.execute(
            select(func.count(OrderModel.id)).where(OrderModel.order_number.like(f"{prefix}%"))
        ).scalar_one()

    def add_history(self, entry: OrderHistoryModel) -> OrderHistoryModel:
        self.db.add(entry)
        self.db.flush()
        return entry

    def get_history(self, order_id: int) -> List[OrderHistoryModel]:
        return list(
            self.db.execute(
                select(OrderHistoryModel)
                .where(OrderHistoryModel.order_id == order_id)
                .order_by(OrderHistoryModel.id)
            ).scalars().all()
        )

    def list_orders(
        self,
        page: int,
        limit: int,
        user_id: int | None = None,
        status: OrderStatus | None = None,
        payment_status: PaymentStatus | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> Tuple[List[OrderModel], int]:
        conditions = []
        if user_id is not None:
            conditions.append(OrderModel.user_id == user_id)
        if status is not None:
            conditions.append(OrderModel.status == status)
        if payment_status is not None:
            conditions.append(OrderModel.payment_status == payment_status)
        if start_date is not None:
            conditions.append(OrderModel.created_at >= start_date)
        if end_date is not None:
            conditions.append(OrderModel.created_at <= end_date)

        total = self.db.execute(
            select(func.count(OrderModel.id)).where(*conditions)
        ).scalar_one()

        orders = self.db.execute(
            select(OrderModel)
            .where(*conditions)
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars().all()

        return list(orders), total

    def list_by_status(self, status: OrderStatus) -> List[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(OrderModel.status == status)
                .order_by(OrderModel.created_at.asc(), OrderModel.id.asc())
            ).scalars().all()
        )

    def count_by_status(self) -> Dict[str, int]:
        rows = self.db.execute(
            select(OrderModel.status, func.count(OrderModel.id)).group_by(OrderModel.status)
        ).all()
        return {OrderStatus(s).value: c for s, c in rows}

    def count_by_payment_status(self) -> Dict[str, int]:
        rows = self.db.execute(
            select(OrderModel.payment_status, func.count(OrderModel.id)).group_by(OrderModel.payment_status)
        ).all()
        return {PaymentStatus(s).value: c for s, c in rows}

    def approved_revenue(self) -> Decimal:
        value = self.db.execute(
            select(func.coalesce(func.sum(OrderModel.total), 0))
            .where(OrderModel.payment_status == PaymentStatus.APPROVED)
        ).scalar_one()
        return Decimal(str(value))

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
