from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from app.core.dependencies import (
    get_attribution_storage,
    get_current_admin,
    get_db,
    get_relay,
)
from app.schemas.client import ClientCreate, ClientResponse, PayoutResponse
from app.services import attribution_service
from app.services.attribution_service import CookieAttributionStorage
from app.services.client_service import (
    list_clients,
    mark_hired,
    register_client,
    trigger_payout,
)
from app.services.payout_service import payout_amount
from app.services.webhook_service import WebhookRelay


router = APIRouter(prefix="/clients", tags=["Clients"])


@router.get("", response_model=List[ClientResponse])
def get_clients(
    db: Session = Depends(get_db),
    admin: str = Depends(get_current_admin),
):
    return list_clients(db)


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
def create_client(
    client: ClientCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    storage: CookieAttributionStorage = Depends(get_attribution_storage),
    relay: WebhookRelay = Depends(get_relay),
):
    attribution = attribution_service.load(storage)
    return register_client(
        client, attribution, db, relay=relay, background_tasks=background_tasks
    )


@router.post("/{client_id}/hire", response_model=ClientResponse)
def confirm_hire(
    client_id: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    relay: WebhookRelay = Depends(get_relay),
    admin: str = Depends(get_current_admin),
):
    return mark_hired(client_id, db, relay=relay, background_tasks=background_tasks)


@router.post("/{client_id}/payout", response_model=PayoutResponse)
def payout(
    client_id: str,
    db: Session = Depends(get_db),
    relay: WebhookRelay = Depends(get_relay),
    admin: str = Depends(get_current_admin),
):
    client = trigger_payout(client_id, db, relay)

    return {
        "message": f"${payout_amount(client.hire_type)} payout triggered for {client.name}",
        "client": ClientResponse.model_validate(client),
    }
