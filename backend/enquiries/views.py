import logging

from django.utils import timezone
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from accounts.mixins import TenantQuerySetMixin
from accounts.permissions import StaffPermission
from accounts.utils import get_tenant_for_request
from hotelops.metrics import track_email_reply
from utils.sendgrid_email import build_reply_email, send_email

from .models import BookingEnquiry, ContactMessage
from .serializers import BookingEnquirySerializer, ContactMessageSerializer, SendReplySerializer

logger = logging.getLogger(__name__)

ENQUIRY_MODELS = {
    "booking": BookingEnquiry,
    "contact": ContactMessage,
}


class BookingEnquiryViewSet(TenantQuerySetMixin, viewsets.ReadOnlyModelViewSet):
    queryset = BookingEnquiry.objects.all()
    serializer_class = BookingEnquirySerializer
    permission_classes = [permissions.IsAuthenticated, StaffPermission]


class ContactMessageViewSet(TenantQuerySetMixin, viewsets.ReadOnlyModelViewSet):
    queryset = ContactMessage.objects.all()
    serializer_class = ContactMessageSerializer
    permission_classes = [permissions.IsAuthenticated, StaffPermission]


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, StaffPermission])
def mark_read(request, kind: str, enquiry_id: int):
    tenant = get_tenant_for_request(request)
    model = ENQUIRY_MODELS.get(kind)
    enquiry = model.objects.filter(tenant=tenant, id=enquiry_id).first() if model else None
    if not enquiry:
        return Response({"detail": "Demande introuvable."}, status=status.HTTP_404_NOT_FOUND)
    if enquiry.status == "new":
        enquiry.status = "read"
        enquiry.save(update_fields=["status", "updated_at"])
    return Response({"id": enquiry.id, "status": enquiry.status})


def _mark_replied(tenant, kind, reference_id):
    model = ENQUIRY_MODELS.get(kind)
    if model is None or not str(reference_id).isdigit():
        return 0
    return model.objects.filter(tenant=tenant, id=int(reference_id)).update(
        status="replied", replied_at=timezone.now(), updated_at=timezone.now()
    )


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, StaffPermission])
def send_reply(request):
    tenant = get_tenant_for_request(request)
    serializer = SendReplySerializer(data=request.data)
    if not serializer.is_valid():
        return Response(
            {"success": False, "error": "Invalid payload", "errors": serializer.errors},
            status=status.HTTP_400_BAD_REQUEST,
        )
    data = serializer.validated_data

    if not data["to"] or not data["subject"] or not data["message"].strip():
        return Response(
            {"success": False, "error": "Missing required fields: to, subject, or message"},
            status=status.HTTP_400_BAD_REQUEST,
        )

    html = build_reply_email(data["message"], data.get("recipientName") or "Guest")
    sent, message_id = send_email(
        to_email=data["to"],
        subject=data["subject"],
        text_body=data["message"],
        html_body=html,
    )
    track_email_reply(sent)
    if not sent:
        logger.warning("Reply email failed tenant=%s to=%s", tenant.id, data["to"])
        return Response(
            {"success": False, "error": "Failed to send email"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    reference_id = data.get("referenceId")
    kind = data.get("type")
    if reference_id and kind:
        updated = _mark_replied(tenant, kind, reference_id)
        if not updated:
            logger.warning("Reply sent but %s enquiry %s not found for tenant=%s", kind, reference_id, tenant.id)

    logger.info("Reply email sent tenant=%s to=%s type=%s ref=%s", tenant.id, data["to"], kind, reference_id)
    return Response({"success": True, "messageId": message_id, "message": "Reply sent successfully"})
