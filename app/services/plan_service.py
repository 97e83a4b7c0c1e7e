"""Plan catalogue: created at Razorpay first, then mirrored locally."""

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.errors import ConflictError, GatewayError, NotFoundError
from app.models.plan import Plan
from app.repositories.plan_repository import PlanRepository
from app.schemas.plan import PlanCreate
from app.services.razorpay_client import RazorpayClient

logger = logging.getLogger(__name__)


class PlanService:
    def __init__(self, db: Session, gateway: RazorpayClient | None = None):
        self.db = db
        self.gateway = gateway or RazorpayClient()
        self.plan_repo = PlanRepository(db)

    def create_plan(self, data: PlanCreate) -> Plan:
        remote = self.gateway.create_plan(
            name=data.name,
            amount=data.amount,
            currency=data.currency.upper(),
            period=data.period.value,
            interval=data.interval,
            description=data.description,
        )
        razorpay_plan_id = remote.get("id")
        if not razorpay_plan_id:
            raise GatewayError("Razorpay did not return a plan id")
        if self.plan_repo.razorpay_plan_id_exists(razorpay_plan_id):
            raise ConflictError(
                f"Plan {razorpay_plan_id} already exists",
                errors=[{"field": "razorpay_plan_id", "message": "already exists"}],
            )

        plan = self.plan_repo.create(data, razorpay_plan_id=razorpay_plan_id)
        logger.info("Created plan %s (%s)", plan.razorpay_plan_id, plan.name)
        return plan

    def list_plans(self) -> list[Plan]:
        return self.plan_repo.get_all()

    def get_plan(self, plan_id: UUID) -> Plan:
        plan = self.plan_repo.get_by_id(plan_id)
        if plan is None:
            raise NotFoundError(f"Plan {plan_id} not found")
        return plan

    def deactivate_plan(self, plan_id: UUID) -> Plan:
        plan = self.plan_repo.deactivate(self.get_plan(plan_id))
        logger.info("Deactivated plan %s", plan.razorpay_plan_id)
        return plan
