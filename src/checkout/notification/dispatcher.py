"""Fire-and-forget notification dispatch.

Delivery failures are logged and never propagate: a notification problem
must not fail the order operation that triggered it.
"""

from checkout.domain import logger
from checkout.notification.channel import get_channel
from checkout.notification.templates import get_template


def dispatch(customer_id: str, kind: str, context: dict) -> list[dict]:
    """Send ``kind`` to ``customer_id`` on each of the template's channels.

    Returns the per-channel results that came back as sent.
    """
    try:
        template = get_template(kind)
        subject, body = template.render(context)
    except (KeyError, ValueError) as exc:
        logger.error("notification_render_failed", kind=kind, customer_id=customer_id, error=str(exc))
        return []

    delivered = []
    for channel_type in template.channels:
        try:
            result = get_channel(channel_type).send(customer_id, subject, body)
        except Exception as exc:  # noqa: BLE001
            logger.warning("notification_channel_error", channel=channel_type, kind=kind, error=str(exc))
            continue

        if result.get("status") == "sent":
            delivered.append({"channel": channel_type, **result})
        else:
            logger.warning(
                "notification_not_delivered",
                channel=channel_type,
                kind=kind,
                customer_id=customer_id,
                error=result.get("error"),
            )
    return delivered
