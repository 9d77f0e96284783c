# roombook/routers/webhooks.py
"""
Record-store change notifications.

The body is verified (HMAC-SHA256, raw bytes) before anything is parsed.
Signature and parse failures return an error status so the sender retries.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError as SchemaError

from ..config import settings
from ..dependencies import get_invalidator, get_payload_client
from ..errors import AuthenticationError, InternalError, ValidationError
from ..schemas.webhooks import WebhookAck, WebhookNotification, WebhookPayload
from ..services.cache.invalidator import CacheInvalidator, select_payloads
from ..services.webhook_payloads import PayloadFetchError, WebhookPayloadClient
from ..utils.signatures import verify_signature

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Webhook-Signature"

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


def _verify(request: Request, body: bytes) -> None:
    secret = settings.webhook_secret
    if not secret:
        if settings.debug:
            logger.warning("Webhook secret not configured, accepting unsigned delivery (debug)")
            return
        logger.error("Webhook secret not configured, rejecting delivery")
        raise AuthenticationError("Webhook signature cannot be verified")

    if not verify_signature(secret, body, request.headers.get(SIGNATURE_HEADER)):
        logger.warning("Webhook signature mismatch")
        raise AuthenticationError("Invalid webhook signature")


def _fetch_payloads(client: WebhookPayloadClient, base_id: str, webhook_id: str) -> list[WebhookPayload]:
    try:
        raw = client.fetch_payloads(base_id, webhook_id)
        return [WebhookPayload.model_validate(p) for p in raw]
    except PayloadFetchError:
        raise InternalError("Failed to fetch webhook payloads")
    except SchemaError:
        raise ValidationError("Invalid webhook payload")


def _process(invalidator: CacheInvalidator, payloads: list[WebhookPayload]) -> tuple[int, set[str]]:
    """Apply payloads one after another; returns (tables affected, tags)."""
    tables_affected = 0
    keys: set[str] = set()
    for payload in payloads:
        result = invalidator.process_webhook_payload(payload)
        tables_affected += result["tables_affected"]
        keys |= result["keys"]
    return tables_affected, keys


@router.post("/record-store", response_model=WebhookAck)
async def record_store_webhook(
    request: Request,
    invalidator: CacheInvalidator = Depends(get_invalidator),
    client: WebhookPayloadClient = Depends(get_payload_client),
):
    body = await request.body()
    _verify(request, body)

    try:
        notification = WebhookNotification.model_validate_json(body)
    except SchemaError as e:
        logger.warning(f"Webhook body rejected: {e.error_count()} error(s)")
        raise ValidationError("Invalid webhook payload")

    base_id = notification.base.id
    if settings.record_store_base_id and base_id != settings.record_store_base_id:
        logger.warning(f"Webhook for unexpected base {base_id}")
        raise ValidationError("Invalid base ID")

    if notification.payloads is not None:
        payloads = notification.payloads
    else:
        payloads = await run_in_threadpool(_fetch_payloads, client, base_id, notification.webhook.id)

    selected, superseded = select_payloads(payloads, latest_only=settings.webhook_latest_only)
    tables_affected, keys = await run_in_threadpool(_process, invalidator, selected)

    logger.info(
        f"Webhook {notification.webhook.id}: {len(selected)}/{len(payloads)} payload(s), "
        f"{len(keys)} tag(s) invalidated"
    )

    return WebhookAck(
        message="Webhook processed" if selected else "No payloads to process",
        payloads_total=len(payloads),
        payloads_processed=len(selected),
        payloads_superseded=superseded,
        tables_affected=tables_affected,
        keys_invalidated=len(keys),
        latest_payload_timestamp=selected[-1].timestamp if selected else None,
    )
