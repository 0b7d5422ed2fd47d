# pr_buddy/routes/webhooks.py

"""GitHub Webhook Handlers

Handles incoming GitHub webhook deliveries. Verification, parsing and
filtering happen inline so the response goes out within milliseconds; the
review itself runs as a background task after the response is sent.
Delivery is at-most-once: a task that fails is only logged.
"""

import logging
from fastapi import APIRouter, BackgroundTasks, Depends, Header, Request
from fastapi.responses import JSONResponse

from pr_buddy.core.config import Settings
from pr_buddy.core.exceptions import PayloadParseError, WebhookVerificationError
from pr_buddy.dependencies import get_pr_processor, get_settings
from pr_buddy.models.github import PRInfo, WebhookEvent
from pr_buddy.services.pr_processor import PRProcessingService
from pr_buddy.utils.event_filter import PULL_REQUEST_EVENT, is_processable
from pr_buddy.utils.payload_parser import extract_pr_info, parse_webhook_payload
from pr_buddy.utils.signature import verify_github_signature

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


def _ignored() -> JSONResponse:
    return JSONResponse({"message": "Event ignored"})


@router.post("/github")
async def handle_github_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_hub_signature_256: str = Header(None),
    x_github_event: str = Header(None),
    x_github_delivery: str = Header(None),
    processor: PRProcessingService = Depends(get_pr_processor),
    config: Settings = Depends(get_settings)
):
    """
    Handle GitHub webhook events

    Args:
        request: FastAPI request object
        background_tasks: FastAPI background tasks
        x_hub_signature_256: GitHub signature header
        x_github_event: GitHub event type header
        x_github_delivery: GitHub delivery ID header
        processor: PR processing service
        config: Application settings

    Returns:
        JSON response with status
    """
    try:
        # Raw body, exactly as signed by GitHub
        event = WebhookEvent(
            event_type=x_github_event,
            delivery_id=x_github_delivery,
            signature=x_hub_signature_256,
            content_type=request.headers.get("content-type"),
            body=await request.body(),
        )

        logger.info(
            f"Received GitHub webhook: {event.event_type}",
            extra={"delivery_id": event.delivery_id}
        )

        if not verify_github_signature(event.body, event.signature, config.GITHUB_WEBHOOK_SECRET):
            raise WebhookVerificationError(
                "Invalid signature", details={"delivery": event.delivery_id}
            )

        if event.event_type != PULL_REQUEST_EVENT:
            logger.info(f"Ignoring non-PR event: {event.event_type}")
            return _ignored()

        payload = parse_webhook_payload(event.body, event.content_type)
        action = payload.get("action")

        if not is_processable(event.event_type, action, config.TRIGGER_ACTIONS):
            logger.info(f"Ignoring PR action: {action}")
            return _ignored()

        pr_info = extract_pr_info(payload)

        logger.info(
            f"Processing PR {pr_info.reference}: {pr_info.title} "
            f"(action={pr_info.action}, public={pr_info.is_public}, delivery={event.delivery_id})"
        )

        # Runs after the response has been sent
        background_tasks.add_task(
            process_pr_background,
            processor=processor,
            pr_info=pr_info,
            delivery_id=event.delivery_id
        )

        return JSONResponse({
            "message": "Webhook received and processing started",
            "pullRequest": pr_info.pull_number,
            "repository": pr_info.full_name,
            "action": pr_info.action
        })

    except WebhookVerificationError as e:
        logger.warning(f"Invalid webhook signature for delivery: {e.details.get('delivery')}")
        return JSONResponse({"error": "Invalid signature"}, status_code=401)
    except PayloadParseError as e:
        logger.error(f"Failed to parse webhook payload: {e.message}")
        return JSONResponse({"error": "Invalid payload"}, status_code=400)
    except Exception as e:
        logger.error(f"Unexpected error in webhook handler: {e}", exc_info=True)
        return JSONResponse({"error": "Internal server error"}, status_code=500)


async def process_pr_background(
    processor: PRProcessingService,
    pr_info: PRInfo,
    delivery_id: str = None
):
    """
    Background task to review a PR

    Args:
        processor: PR processing service
        pr_info: PR to review
        delivery_id: Webhook delivery ID, for log correlation
    """
    try:
        result = await processor.process_pr(pr_info)
        logger.info(
            f"Background processing completed: status={result.status.value}",
            extra={"delivery_id": delivery_id, "pr": pr_info.reference}
        )
    except Exception as e:
        logger.error(
            f"Async processing error for PR {pr_info.reference} (delivery={delivery_id}): {e}",
            exc_info=True
        )
