import httpx
import asyncio
import logging
from typing import Optional
from rental_quotes.core.config import settings
from rental_quotes.core.metrics import webhook_deliveries

logger = logging.getLogger(__name__)


async def send_webhook(payload: dict, retries: Optional[int] = None, url: Optional[str] = None) -> bool:
    url = url or settings.WEBHOOK_URL
    if not url:
        return False

    if retries is None:
        retries = settings.WEBHOOK_RETRIES

    backoff = 1.0
    reference = payload.get("quote_reference")

    for attempt in range(1, retries + 1):
        try:
            async with httpx.AsyncClient(timeout=settings.WEBHOOK_TIMEOUT) as client:
                response = await client.post(url, json=payload)

                if 200 <= response.status_code < 300:
                    webhook_deliveries.labels(status="success", retry_count=str(attempt - 1)).inc()
                    logger.info(f"Webhook {payload.get('event')} delivered for quote {reference}")
                    return True
                else:
                    logger.warning(
                        f"Webhook delivery failed (attempt {attempt}/{retries}): "
                        f"Status {response.status_code} for quote {reference}"
                    )
        except httpx.TimeoutException:
            logger.warning(
                f"Webhook timeout (attempt {attempt}/{retries}) for quote {reference}"
            )
        except httpx.HTTPError as e:
            logger.warning(
                f"Webhook delivery error (attempt {attempt}/{retries}): {e} "
                f"for quote {reference}"
            )

        if attempt < retries:
            await asyncio.sleep(backoff)
            backoff *= 2.0

    webhook_deliveries.labels(status="failed", retry_count=str(retries)).inc()
    logger.error(f"Webhook delivery failed after {retries} attempts for quote {reference}")
    return False


def quote_saved_event(quote) -> dict:
    return {
        "event": "quote.saved",
        "quote_id": quote.id,
        "quote_reference": quote.quote_reference,
        "status": str(quote.status),
        "client_name": quote.client_name,
        "categories": {
            name: {
                "grand_total": data.get("grand_total"),
                "advance_payment": data.get("advance_payment"),
                "available": data.get("available"),
            }
            for name, data in (quote.quote_data or {}).items()
        },
    }
