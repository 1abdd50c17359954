from typing import Callable, List, Optional

from fastapi import BackgroundTasks, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.models.client import Client
from app.schemas.client import ClientCreate
from app.services.attribution_service import AttributionState
from app.services.payout_service import payout_amount
from app.services.webhook_service import (
    WEBHOOK_URL_SETTING,
    WebhookNotConfigured,
    WebhookRejected,
    WebhookRelay,
    WebhookUnreachable,
)


log = get_logger(__name__)


def _store_error(db: Session, action: str, exc: SQLAlchemyError) -> HTTPException:
    db.rollback()
    log.exception("%s", action)
    return HTTPException(status_code=500, detail=f"{action}: {exc}")


def _get_client_or_404(client_id: str, db: Session) -> Client:
    client = db.query(Client).filter(Client.id == client_id).first()
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


def _notify(background_tasks: Optional[BackgroundTasks], func: Callable, *args, **kwargs) -> None:
    # Runs after the response is sent when the request provides a task queue
    if background_tasks is not None:
        background_tasks.add_task(func, *args, **kwargs)
    else:
        func(*args, **kwargs)


def list_clients(db: Session) -> List[Client]:
    try:
        return db.query(Client).order_by(Client.created_at.desc()).all()
    except SQLAlchemyError as exc:
        raise _store_error(db, "Failed to fetch clients", exc)


def register_client(
    data: ClientCreate,
    attribution: AttributionState,
    db: Session,
    relay: Optional[WebhookRelay] = None,
    background_tasks: Optional[BackgroundTasks] = None,
) -> Client:
    client = Client(
        name=data.name,
        email=data.email,
        va_name=data.va_name,
        hire_type=data.hire_type,
        affiliate_id=attribution.affiliate_id,
        is_hired=False,
        is_paid=False,
    )

    try:
        db.add(client)
        db.commit()
        db.refresh(client)
    except SQLAlchemyError as exc:
        raise _store_error(db, "Failed to register", exc)

    log.info("Client %s registered (affiliate=%s)", client.id, client.affiliate_id or "-")

    # Registration is complete whether or not the CRM hears about it
    if relay is not None:
        _notify(background_tasks, relay.notify_lead, client, fingerprint=attribution.fingerprint)

    return client


def mark_hired(
    client_id: str,
    db: Session,
    relay: Optional[WebhookRelay] = None,
    background_tasks: Optional[BackgroundTasks] = None,
) -> Client:
    client = _get_client_or_404(client_id, db)

    if client.is_hired:
        return client

    try:
        client.is_hired = True
        db.commit()
        db.refresh(client)
    except SQLAlchemyError as exc:
        raise _store_error(db, "Failed to update hire status", exc)

    log.info("Client %s marked hired", client.id)

    if relay is not None and client.affiliate_id:
        _notify(background_tasks, relay.notify_customer, client)

    return client


def trigger_payout(client_id: str, db: Session, relay: WebhookRelay) -> Client:
    client = _get_client_or_404(client_id, db)

    if not client.affiliate_id:
        raise HTTPException(status_code=409, detail="No affiliate attached to this client")

    if not client.is_hired:
        raise HTTPException(status_code=409, detail="Client must be hired before payout")

    if client.is_paid:
        raise HTTPException(status_code=409, detail="Payout already triggered")

    # The CRM must accept the payout before it is recorded locally
    try:
        relay.notify_payout(client)
    except WebhookNotConfigured:
        raise HTTPException(
            status_code=500,
            detail=f"Payout not sent: {WEBHOOK_URL_SETTING} not configured",
        )
    except WebhookUnreachable:
        raise HTTPException(
            status_code=502,
            detail=f"Payout not sent: GHL webhook unreachable. Check {WEBHOOK_URL_SETTING}",
        )
    except WebhookRejected as exc:
        raise HTTPException(
            status_code=502,
            detail=(
                f"Payout not sent: GHL webhook returned status {exc.status_code}. "
                f"Check {WEBHOOK_URL_SETTING}"
            ),
        )

    try:
        client.is_paid = True
        db.commit()
        db.refresh(client)
    except SQLAlchemyError as exc:
        raise _store_error(db, "Failed to update payout status", exc)

    log.info("Payout of $%s recorded for client %s", payout_amount(client.hire_type), client.id)

    return client
