from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth import CurrentUser, get_current_user
from app.core.database import get_db
from app.models.plan import Plan
from app.schemas.plan import PlanCreate, PlanResponse
from app.services.plan_service import PlanService
from app.services.razorpay_client import RazorpayClient, get_razorpay_client

router = APIRouter()


def get_plan_service(
    db: Session = Depends(get_db),
    gateway: RazorpayClient = Depends(get_razorpay_client),
) -> PlanService:
    return PlanService(db, gateway)


@router.post(
    "/create",
    response_model=PlanResponse,
    status_code=201,
    summary="Create plan",
    responses={
        401: {"description": "Missing, invalid or expired bearer token"},
        409: {"description": "Plan already exists"},
        502: {"description": "Razorpay request failed"},
    },
)
def create_plan(
    data: PlanCreate,
    _user: CurrentUser = Depends(get_current_user),
    service: PlanService = Depends(get_plan_service),
) -> Plan:
    """Create the plan at Razorpay and mirror it locally."""
    return service.create_plan(data)


@router.get("/", response_model=list[PlanResponse], summary="List active plans")
def list_plans(service: PlanService = Depends(get_plan_service)) -> list[Plan]:
    return service.list_plans()


@router.get(
    "/{plan_id}",
    response_model=PlanResponse,
    summary="Get plan",
    responses={404: {"description": "Plan not found"}},
)
def get_plan(plan_id: UUID, service: PlanService = Depends(get_plan_service)) -> Plan:
    return service.get_plan(plan_id)


@router.delete(
    "/{plan_id}",
    response_model=PlanResponse,
    summary="Deactivate plan",
    responses={
        401: {"description": "Missing, invalid or expired bearer token"},
        404: {"description": "Plan not found"},
    },
)
def delete_plan(
    plan_id: UUID,
    _user: CurrentUser = Depends(get_current_user),
    service: PlanService = Depends(get_plan_service),
) -> Plan:
    """Soft-delete: the plan stays at Razorpay but is no longer offered."""
    return service.deactivate_plan(plan_id)
