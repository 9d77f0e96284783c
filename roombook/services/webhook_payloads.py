"""
HTTP client for the record store's webhook payload queue.

A webhook ping only says "something changed"; the change payloads are
listed at {api_url}/bases/{base_id}/webhooks/{webhook_id}/payloads.
"""

import logging

import httpx

logger = logging.getLogger(__name__)


class PayloadFetchError(Exception):
    pass


class WebhookPayloadClient:
    """Synchronous client, one request per webhook delivery."""

    def __init__(self, api_url: str, api_key: str | None, timeout: float = 10.0):
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def fetch_payloads(self, base_id: str, webhook_id: str) -> list[dict]:
        url = f"{self.api_url}/bases/{base_id}/webhooks/{webhook_id}/payloads"
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.get(url, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Webhook payload request failed: {e}")
            raise PayloadFetchError(str(e)) from e

        if resp.status_code >= 400:
            logger.error(f"Webhook payload request -> {resp.status_code}: {resp.text[:200]}")
            raise PayloadFetchError(f"Failed to fetch webhook payloads: {resp.status_code}")

        return resp.json().get("payloads") or []
