"""
Event Filter - Decide which WhatsApp webhook envelopes carry user messages.

WhatsApp Cloud API envelopes look like::

    {"object": "whatsapp_business_account",
     "entry": [{"id": "...", "changes": [{"field": "messages",
                                          "value": {"messages": [...]}}]}]}

Delivery and read receipts arrive on the same route with ``statuses``
instead of ``messages``. Anything that does not match the shape above is
treated as nothing to forward.
"""

from typing import Any, Dict, Iterator, List, Optional

from whgateway.logging import StructuredLogger, get_logger

# Used when the caller does not pass its own logger
_default_logger = get_logger("whgateway.filter")


def iter_changes(envelope: Any) -> Iterator[Dict[str, Any]]:
    """
    Yield the ``value`` object of every well-formed change in an envelope.

    Entries or changes of the wrong type are skipped. A change with no
    ``value`` yields an empty dict.

    Args:
        envelope: Parsed webhook body (any JSON value)

    Yields:
        Change value dictionaries
    """
    if not isinstance(envelope, dict):
        return

    entries = envelope.get("entry") or []
    if not isinstance(entries, list):
        return

    for entry in entries:
        if not isinstance(entry, dict):
            continue

        changes = entry.get("changes") or []
        if not isinstance(changes, list):
            continue

        for change in changes:
            if not isinstance(change, dict):
                continue

            value = change.get("value") or {}
            yield value if isinstance(value, dict) else {}


def has_messages(value: Dict[str, Any]) -> bool:
    """Check whether a change value holds a non-empty ``messages`` list."""
    messages = value.get("messages")
    return isinstance(messages, list) and len(messages) > 0


def message_changes(
    envelope: Any,
    logger: Optional[StructuredLogger] = None
) -> List[Dict[str, Any]]:
    """
    Return the change values that should be forwarded, in envelope order.

    Every other change is logged as ignored.

    Args:
        envelope: Parsed webhook body
        logger: Logger for ignored changes (module default if omitted)

    Returns:
        Change values with a non-empty ``messages`` list
    """
    logger = logger or _default_logger
    matched = []

    for value in iter_changes(envelope):
        if has_messages(value):
            matched.append(value)
        else:
            logger.info(
                "Ignored non-message event (status/update)",
                keys=sorted(value.keys())
            )

    return matched


def should_forward(envelope: Any, logger: Optional[StructuredLogger] = None) -> bool:
    """
    Decide whether an envelope contains at least one user message.

    Args:
        envelope: Parsed webhook body
        logger: Logger for the no-match note (module default if omitted)

    Returns:
        True if any change carries a non-empty ``messages`` list
    """
    logger = logger or _default_logger

    if any(has_messages(value) for value in iter_changes(envelope)):
        return True

    logger.info("Envelope has no user messages")
    return False
