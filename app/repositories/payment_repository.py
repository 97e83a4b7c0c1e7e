"""Payment repository for data access."""

from typing import Any

from sqlalchemy.orm import Session

from app.models.payment import Payment, PaymentStatus


class PaymentRepository:
    """Repository for Payment model."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_order_id(self, order_id: str) -> Payment | None:
        return self.db.query(Payment).filter(Payment.order_id == order_id).first()

    def create(self, order_id: str, amount: int, currency: str) -> Payment:
        """Record a freshly created order."""
        payment = Payment(
            order_id=order_id,
            amount=amount,
            currency=currency,
            status=PaymentStatus.CREATED.value,
        )
        self.db.add(payment)
        self.db.commit()
        self.db.refresh(payment)
        return payment

    def update(self, payment: Payment, **fields: Any) -> Payment:
        for key, value in fields.items():
            setattr(payment, key, value)
        self.db.commit()
        self.db.refresh(payment)
        return payment

    def upsert(self, order_id: str, **fields: Any) -> Payment:
        """Update the order's payment, creating it if the order is unknown locally."""
        payment = self.get_by_order_id(order_id)
        if payment is None:
            payment = Payment(order_id=order_id, **fields)
            self.db.add(payment)
        else:
            for key, value in fields.items():
                setattr(payment, key, value)
        self.db.commit()
        self.db.refresh(payment)
        return payment
