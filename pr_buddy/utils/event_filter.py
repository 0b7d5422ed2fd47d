# pr_buddy/utils/event_filter.py

"""Decides which webhook deliveries start a review."""

from typing import Iterable, Optional

PULL_REQUEST_EVENT = "pull_request"

# Only newly opened PRs are reviewed; pushes to an open PR are not.
DEFAULT_TRIGGER_ACTIONS = ("opened",)


def is_processable(
    event_type: Optional[str],
    action: Optional[str],
    trigger_actions: Optional[Iterable[str]] = None
) -> bool:
    """
    Check whether an event/action pair should be reviewed

    Args:
        event_type: X-GitHub-Event header value
        action: Payload "action" field
        trigger_actions: Allowed actions (defaults to DEFAULT_TRIGGER_ACTIONS)

    Returns:
        True if the delivery should be processed
    """
    if event_type != PULL_REQUEST_EVENT:
        return False

    allowed = DEFAULT_TRIGGER_ACTIONS if trigger_actions is None else tuple(trigger_actions)
    return action in allowed
