import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from enquiries.models import BookingEnquiry, ContactMessage
from utils.sendgrid_email import build_reply_email
from .factories import TenantFactory, UserFactory


def _auth_client(user):
    client = APIClient()
    token = RefreshToken.for_user(user).access_token
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return client


@pytest.fixture
def no_sendgrid(settings):
    settings.SENDGRID_API_KEY = ""
    settings.EMAIL_BRAND_NAME = "Hôtel de la Plage"
    return settings


def test_reply_template_escapes_message():
    html = build_reply_email("Bonjour <b>\nà bientôt", "Awa")
    assert "Dear Awa," in html
    assert "&lt;b&gt;<br>" in html
    assert "<b>" not in html


@pytest.mark.django_db
def test_send_reply_marks_booking_replied(no_sendgrid, mailoutbox):
    tenant = TenantFactory()
    user = UserFactory(profile=tenant)
    booking = BookingEnquiry.objects.create(tenant=tenant, name="Awa", email="awa@guest.test", message="Chambre ?")

    res = _auth_client(user).post(
        "/api/email/send-reply/",
        {
            "to": "awa@guest.test",
            "subject": "Votre réservation",
            "message": "Une chambre est disponible.",
            "referenceId": str(booking.id),
            "type": "booking",
            "recipientName": "Awa",
        },
        format="json",
    )
    assert res.status_code == 200
    assert res.data["success"] is True
    assert res.data["message"] == "Reply sent successfully"
    assert res.data["messageId"]

    assert len(mailoutbox) == 1
    sent = mailoutbox[0]
    assert sent.to == ["awa@guest.test"]
    assert sent.body == "Une chambre est disponible."
    html, mimetype = sent.alternatives[0]
    assert mimetype == "text/html"
    assert "Response from Hôtel de la Plage" in html

    booking.refresh_from_db()
    assert booking.status == "replied"
    assert booking.replied_at is not None


@pytest.mark.django_db
def test_send_reply_missing_fields(no_sendgrid, mailoutbox):
    user = UserFactory()
    res = _auth_client(user).post(
        "/api/email/send-reply/",
        {"to": "awa@guest.test", "subject": "", "message": "Bonjour"},
        format="json",
    )
    assert res.status_code == 400
    assert res.data == {"success": False, "error": "Missing required fields: to, subject, or message"}
    assert mailoutbox == []


@pytest.mark.django_db
def test_send_reply_invalid_email(no_sendgrid):
    user = UserFactory()
    res = _auth_client(user).post(
        "/api/email/send-reply/",
        {"to": "pas-un-email", "subject": "Hello", "message": "Bonjour"},
        format="json",
    )
    assert res.status_code == 400
    assert res.data["success"] is False
    assert "to" in res.data["errors"]


@pytest.mark.django_db
def test_send_reply_failure_returns_500(no_sendgrid, monkeypatch):
    tenant = TenantFactory()
    user = UserFactory(profile=tenant)
    contact = ContactMessage.objects.create(tenant=tenant, name="Léo", email="leo@guest.test", subject="Parking")
    monkeypatch.setattr("enquiries.views.send_email", lambda **kwargs: (False, ""))

    res = _auth_client(user).post(
        "/api/email/send-reply/",
        {
            "to": "leo@guest.test",
            "subject": "Parking",
            "message": "Oui.",
            "referenceId": str(contact.id),
            "type": "contact",
        },
        format="json",
    )
    assert res.status_code == 500
    assert res.data == {"success": False, "error": "Failed to send email"}
    contact.refresh_from_db()
    assert contact.status == "new"


@pytest.mark.django_db
def test_reply_for_other_tenant_enquiry_does_not_mark_it(no_sendgrid, mailoutbox):
    user = UserFactory()
    foreign = BookingEnquiry.objects.create(tenant=TenantFactory(), name="X", email="x@guest.test")

    res = _auth_client(user).post(
        "/api/email/send-reply/",
        {"to": "x@guest.test", "subject": "Hi", "message": "Bonjour", "referenceId": foreign.id, "type": "booking"},
        format="json",
    )
    assert res.status_code == 200
    foreign.refresh_from_db()
    assert foreign.status == "new"


@pytest.mark.django_db
def test_enquiry_lists_and_mark_read():
    tenant = TenantFactory()
    user = UserFactory(profile=tenant, profile__role="operator")
    contact = ContactMessage.objects.create(tenant=tenant, name="Léo", email="leo@guest.test", subject="Parking")
    ContactMessage.objects.create(tenant=TenantFactory(), name="Autre", email="autre@guest.test")
    client = _auth_client(user)

    res = client.get("/api/enquiries/contacts/")
    assert res.status_code == 200
    assert [row["id"] for row in res.data] == [contact.id]

    read = client.post(f"/api/enquiries/contact/{contact.id}/read/", {}, format="json")
    assert read.status_code == 200
    assert read.data == {"id": contact.id, "status": "read"}
    assert client.post("/api/enquiries/booking/999/read/", {}, format="json").status_code == 404
