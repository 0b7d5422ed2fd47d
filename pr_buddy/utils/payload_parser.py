# pr_buddy/utils/payload_parser.py

"""Webhook Payload Parser

Normalizes a raw delivery body into a dict and extracts a typed PRInfo.
GitHub can deliver either ``application/json`` or
``application/x-www-form-urlencoded`` with the JSON in a ``payload`` field.
"""

from typing import Any, Dict, Optional
from urllib.parse import parse_qs
import json
import logging

from pydantic import ValidationError

from pr_buddy.core.exceptions import PayloadParseError
from pr_buddy.models.github import PRInfo
from pr_buddy.schemas.webhook import GitHubWebhookPayload

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def _media_type(content_type: Optional[str]) -> str:
    """Strip parameters such as '; charset=utf-8' from a Content-Type"""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def parse_webhook_payload(raw_body: bytes, content_type: Optional[str]) -> Dict[str, Any]:
    """
    Parse a webhook body into a JSON object

    Args:
        raw_body: Raw request body bytes
        content_type: Content-Type header value

    Returns:
        Decoded payload dict

    Raises:
        PayloadParseError: On an empty body, a missing form field, or invalid JSON
    """
    if not raw_body:
        raise PayloadParseError("No body data received")

    try:
        body_text = raw_body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise PayloadParseError(f"Body is not valid UTF-8: {e}")

    if _media_type(content_type) == FORM_CONTENT_TYPE:
        fields = parse_qs(body_text, keep_blank_values=True)
        values = fields.get("payload")
        if not values or not values[0]:
            raise PayloadParseError("No payload parameter found in form data")
        json_text = values[0]
    else:
        json_text = body_text

    try:
        payload = json.loads(json_text)
    except json.JSONDecodeError as e:
        raise PayloadParseError(f"Invalid JSON payload: {e.msg}", details={"position": e.pos})

    if not isinstance(payload, dict):
        raise PayloadParseError(
            f"Payload must be a JSON object, got {type(payload).__name__}"
        )

    return payload


def extract_pr_info(payload: Dict[str, Any]) -> PRInfo:
    """
    Validate a pull_request payload and build a PRInfo

    Args:
        payload: Decoded webhook payload

    Returns:
        PRInfo with every field populated

    Raises:
        PayloadParseError: If any required field is missing or has the wrong type
    """
    try:
        event = GitHubWebhookPayload.model_validate(payload)
    except ValidationError as e:
        fields = [".".join(str(part) for part in err["loc"]) for err in e.errors()]
        raise PayloadParseError(
            f"Invalid pull_request payload: {', '.join(fields)}",
            details={"fields": fields}
        )

    pr = event.pull_request
    return PRInfo(
        owner=event.repository.owner.login,
        repo=event.repository.name,
        pull_number=pr.number,
        action=event.action,
        title=pr.title,
        author=pr.user.login,
        head_sha=pr.head.sha,
        base_sha=pr.base.sha,
        html_url=pr.html_url,
        is_public=not event.repository.private,
    )
