from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth import CurrentUser, get_current_user
from app.core.database import get_db
from app.models.subscription import Subscription
from app.schemas.subscription import (
    SubscriptionCancel,
    SubscriptionCreate,
    SubscriptionResponse,
    SubscriptionVerify,
)
from app.services.razorpay_client import RazorpayClient, get_razorpay_client
from app.services.subscription_lifecycle import SubscriptionLifecycleService

router = APIRouter()

_AUTH_RESPONSES = {401: {"description": "Missing, invalid or expired bearer token"}}

# Route handlers are sync: the gateway client blocks, so FastAPI runs them in
# its threadpool.


def get_lifecycle_service(
    db: Session = Depends(get_db),
    gateway: RazorpayClient = Depends(get_razorpay_client),
) -> SubscriptionLifecycleService:
    return SubscriptionLifecycleService(db, gateway)


@router.post(
    "/create",
    response_model=SubscriptionResponse,
    status_code=201,
    summary="Create subscription",
    responses={
        **_AUTH_RESPONSES,
        404: {"description": "Plan not found or inactive"},
        409: {"description": "User already has an open subscription to this plan"},
        502: {"description": "Razorpay request failed"},
    },
)
def create_subscription(
    data: SubscriptionCreate,
    user: CurrentUser = Depends(get_current_user),
    service: SubscriptionLifecycleService = Depends(get_lifecycle_service),
) -> Subscription:
    """Create a Razorpay subscription for the calling user."""
    return service.create_subscription(user, data)


@router.post(
    "/verify",
    response_model=SubscriptionResponse,
    summary="Verify subscription checkout payment",
    responses={
        400: {"description": "Invalid signature or subscription already ended"},
        404: {"description": "Subscription not found"},
        502: {"description": "Razorpay request failed"},
    },
)
def verify_subscription(
    data: SubscriptionVerify,
    service: SubscriptionLifecycleService = Depends(get_lifecycle_service),
) -> Subscription:
    """Verify the checkout callback and refresh the subscription from Razorpay."""
    return service.verify_payment(data)


@router.get(
    "/user/all",
    response_model=list[SubscriptionResponse],
    summary="List my subscriptions",
    responses=_AUTH_RESPONSES,
)
def list_user_subscriptions(
    user: CurrentUser = Depends(get_current_user),
    service: SubscriptionLifecycleService = Depends(get_lifecycle_service),
) -> list[Subscription]:
    return service.list_for_user(user.id)


@router.get(
    "/{subscription_id}",
    response_model=SubscriptionResponse,
    summary="Get subscription",
    responses={**_AUTH_RESPONSES, 404: {"description": "Subscription not found"}},
)
def get_subscription(
    subscription_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: SubscriptionLifecycleService = Depends(get_lifecycle_service),
) -> Subscription:
    return service.get_for_user(subscription_id, user.id)


@router.post(
    "/{subscription_id}/cancel",
    response_model=SubscriptionResponse,
    summary="Cancel subscription",
    responses={
        **_AUTH_RESPONSES,
        400: {"description": "Subscription cannot be cancelled from its current status"},
        404: {"description": "Subscription not found"},
        502: {"description": "Razorpay request failed"},
    },
)
def cancel_subscription(
    subscription_id: str,
    data: SubscriptionCancel | None = None,
    user: CurrentUser = Depends(get_current_user),
    service: SubscriptionLifecycleService = Depends(get_lifecycle_service),
) -> Subscription:
    """Cancel now, or at the end of the current cycle."""
    cancel_at_cycle_end = data.cancel_at_cycle_end if data else False
    return service.cancel_subscription(subscription_id, user.id, cancel_at_cycle_end)


@router.post(
    "/{subscription_id}/pause",
    response_model=SubscriptionResponse,
    summary="Pause subscription",
    responses={
        **_AUTH_RESPONSES,
        400: {"description": "Only active subscriptions can be paused"},
        404: {"description": "Subscription not found"},
        502: {"description": "Razorpay request failed"},
    },
)
def pause_subscription(
    subscription_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: SubscriptionLifecycleService = Depends(get_lifecycle_service),
) -> Subscription:
    return service.pause_subscription(subscription_id, user.id)


@router.post(
    "/{subscription_id}/resume",
    response_model=SubscriptionResponse,
    summary="Resume subscription",
    responses={
        **_AUTH_RESPONSES,
        400: {"description": "Only paused subscriptions can be resumed"},
        404: {"description": "Subscription not found"},
        502: {"description": "Razorpay request failed"},
    },
)
def resume_subscription(
    subscription_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: SubscriptionLifecycleService = Depends(get_lifecycle_service),
) -> Subscription:
    return service.resume_subscription(subscription_id, user.id)
