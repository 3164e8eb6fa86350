from django.http import HttpResponse
from prometheus_client import CONTENT_TYPE_LATEST, Counter, generate_latest

ORDER_TRANSITIONS = Counter(
    "hotelops_order_transitions_total",
    "Food order status transitions",
    ["status"],
)
RESTOCK_DRAFTS = Counter(
    "hotelops_restock_drafts_total",
    "Draft purchase orders created by the restock check",
    ["mode"],
)
PURCHASE_ORDER_TRANSITIONS = Counter(
    "hotelops_purchase_order_transitions_total",
    "Purchase order status transitions",
    ["status"],
)
EMAIL_REPLIES = Counter(
    "hotelops_email_replies_total",
    "Guest reply emails",
    ["result"],
)


def metrics_view(request):
    payload = generate_latest()
    return HttpResponse(payload, content_type=CONTENT_TYPE_LATEST)


def track_order_transition(status):
    ORDER_TRANSITIONS.labels(status=status or "unknown").inc()


def track_restock_drafts(mode, count=1):
    if count:
        RESTOCK_DRAFTS.labels(mode=mode or "unknown").inc(count)


def track_purchase_order_transition(status):
    PURCHASE_ORDER_TRANSITIONS.labels(status=status or "unknown").inc()


def track_email_reply(sent):
    EMAIL_REPLIES.labels(result="sent" if sent else "failed").inc()
