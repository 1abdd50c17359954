import json

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from app.core.dependencies import get_relay
from app.services.webhook_service import (
    WebhookNotConfigured,
    WebhookRelay,
    WebhookUnreachable,
)


router = APIRouter(prefix="/api", tags=["Webhook Relay"])


@router.post("/ghl-webhook")
async def relay_webhook(request: Request, relay: WebhookRelay = Depends(get_relay)):
    if not relay.configured:
        return JSONResponse(status_code=500, content={"error": "GHL_WEBHOOK_URL not configured"})

    body = await request.body()
    try:
        # An empty body is relayed as an empty object
        payload = json.loads(body) if body.strip() else {}
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JSONResponse(status_code=400, content={"error": "Invalid JSON body"})

    try:
        result = await run_in_threadpool(relay.forward, payload)
    except WebhookNotConfigured:
        return JSONResponse(status_code=500, content={"error": "GHL_WEBHOOK_URL not configured"})
    except WebhookUnreachable:
        return JSONResponse(status_code=502, content={"error": "Failed to reach GHL webhook"})

    return Response(
        content=result.body,
        status_code=result.status_code,
        media_type=result.content_type or "text/html; charset=utf-8",
    )


@router.api_route("/ghl-webhook", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
def relay_method_not_allowed():
    return JSONResponse(status_code=405, content={"error": "Method not allowed"})
