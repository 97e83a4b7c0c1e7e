from uuid import UUID

from sqlalchemy.orm import Session

from app.models.plan import Plan
from app.schemas.plan import PlanCreate


class PlanRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(self, include_inactive: bool = False) -> list[Plan]:
        query = self.db.query(Plan)
        if not include_inactive:
            query = query.filter(Plan.is_active.is_(True))
        return query.order_by(Plan.created_at.desc()).all()

    def get_by_id(self, plan_id: UUID) -> Plan | None:
        return self.db.query(Plan).filter(Plan.id == plan_id).first()

    def get_by_razorpay_id(self, razorpay_plan_id: str) -> Plan | None:
        return self.db.query(Plan).filter(Plan.razorpay_plan_id == razorpay_plan_id).first()

    def create(self, data: PlanCreate, razorpay_plan_id: str) -> Plan:
        plan = Plan(
            razorpay_plan_id=razorpay_plan_id,
            name=data.name,
            description=data.description,
            amount=data.amount,
            currency=data.currency.upper(),
            period=data.period.value,
            interval=data.interval,
        )
        self.db.add(plan)
        self.db.commit()
        self.db.refresh(plan)
        return plan

    def deactivate(self, plan: Plan) -> Plan:
        """Soft-delete: the provider plan stays, it is just no longer offered."""
        plan.is_active = False  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(plan)
        return plan

    def razorpay_plan_id_exists(self, razorpay_plan_id: str) -> bool:
        return self.get_by_razorpay_id(razorpay_plan_id) is not None
