"""SendGrid helpers shared across the backend."""

from __future__ import annotations

import base64
import logging
import re
from email.utils import make_msgid
from typing import Optional, Tuple

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from python_http_client.exceptions import HTTPError
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import (
    Attachment,
    Disposition,
    FileContent,
    FileName,
    FileType,
    Mail,
    ReplyTo,
)

logger = logging.getLogger(__name__)


def _build_sendgrid_attachment(filename: str, file_bytes: bytes, mimetype: str):
    if not file_bytes:
        return None

    encoded = base64.b64encode(file_bytes).decode()
    attachment = Attachment()
    attachment.file_content = FileContent(encoded)
    attachment.file_type = FileType(mimetype or "application/octet-stream")
    attachment.file_name = FileName(filename or "attachment.bin")
    attachment.disposition = Disposition("attachment")
    return attachment


def _escape_html(text: str) -> str:
    if text is None:
        return ""
    return (
        str(text)
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
    )


def _looks_like_full_html(html: str) -> bool:
    if not html:
        return False
    return bool(re.search(r"<html\b|<!doctype\b", html, flags=re.IGNORECASE))


def _hotel_html_template(*, title: str, content_html: str, footer_note: str = "") -> str:
    """
    HTML email compatible clients (table-based), carte claire aux couleurs de l'hôtel.
    content_html doit être déjà en HTML.
    """
    brand = getattr(settings, "EMAIL_BRAND_NAME", "HotelOps")
    support_email = getattr(settings, "SUPPORT_EMAIL", "")
    safe_title = _escape_html(title or brand)
    safe_footer = _escape_html(footer_note or f"{brand}")

    support_block = ""
    if support_email:
        support_block = f"""
                <div style="font-family: Georgia, 'Times New Roman', serif;color:#6b7280;font-size:13px;margin-top:18px;">
                  Contact : <a href="mailto:{_escape_html(support_email)}"
                    style="color:#b45309;text-decoration:none;">{_escape_html(support_email)}</a>
                </div>"""

    return f"""<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width" />
    <title>{safe_title}</title>
  </head>
  <body style="margin:0;padding:0;background:#f5f1ea;">
    <table role="presentation" cellpadding="0" cellspacing="0" width="100%" style="background:#f5f1ea;">
      <tr>
        <td align="center" style="padding: 28px 12px;">
          <table role="presentation" cellpadding="0" cellspacing="0" width="640"
                 style="max-width:640px;width:100%;background:#ffffff;border-radius:12px;">
            <tr>
              <td style="padding: 22px 28px;border-bottom:2px solid #d4a574;">
                <div style="font-family: Georgia, 'Times New Roman', serif;color:#1f2937;font-size:20px;font-weight:700;">
                  {_escape_html(brand)}
                </div>
              </td>
            </tr>
            <tr>
              <td style="padding: 24px 28px;">
                <div style="font-family: Georgia, 'Times New Roman', serif;color:#1f2937;font-size:16px;line-height:1.7;">
                  {content_html}
                </div>{support_block}
              </td>
            </tr>
            <tr>
              <td style="padding: 14px 28px;background:#1f2937;border-radius:0 0 12px 12px;">
                <div style="font-family: Georgia, 'Times New Roman', serif;color:#d1d5db;font-size:12px;text-align:center;">
                  {safe_footer}
                </div>
              </td>
            </tr>
          </table>
        </td>
      </tr>
    </table>
  </body>
</html>
"""


def build_reply_email(message: str, recipient_name: str = "Guest") -> str:
    """Réponse de l'équipe à une demande client (réservation ou contact)."""
    brand = getattr(settings, "EMAIL_BRAND_NAME", "HotelOps")
    formatted = _escape_html(message or "").replace("\n", "<br>")
    content = f"""
    <h2 style="margin-top:0;font-size:22px;color:#1f2937;">Response from {_escape_html(brand)}</h2>
    <p style="color:#6b7280;">Dear {_escape_html(recipient_name or "Guest")},</p>
    <div style="border-left:3px solid #d4a574;padding-left:18px;margin:18px 0;">{formatted}</div>
    <p style="color:#6b7280;font-size:15px;">If you have further questions, please simply reply to this email.</p>
    """
    return _hotel_html_template(title=f"Response from {brand}", content_html=content)


def _wrap_html(subject: str, text_body: str, html_body: Optional[str]) -> str:
    if html_body:
        if _looks_like_full_html(html_body):
            return html_body
        content = html_body.strip()
        if "<" not in content:
            content = f"<p style='margin:0'>{_escape_html(content)}</p>"
        return _hotel_html_template(title=subject, content_html=content)

    safe = _escape_html(text_body or "")
    safe = safe.replace("\n\n", "</p><p style='margin:0 0 10px 0;'>").replace("\n", "<br/>")
    return _hotel_html_template(title=subject, content_html=f"<p style='margin:0 0 10px 0;'>{safe}</p>")


def _summarize_sendgrid_exception(exc: HTTPError) -> Tuple[Optional[int], str]:
    body = getattr(exc, "body", None)
    if isinstance(body, (bytes, bytearray)):
        body = body.decode(errors="ignore")
    return getattr(exc, "status_code", None), str(body or "")[:800]


def send_email(
    *,
    to_email: str,
    subject: str,
    text_body: str,
    html_body: Optional[str] = None,
    filename: str = "",
    file_bytes: Optional[bytes] = None,
    mimetype: str = "text/plain",
    fallback_to_django: bool = True,
) -> Tuple[bool, str]:
    """
    Envoie un email via SendGrid quand configuré, sinon fallback vers EmailMultiAlternatives.
    Renvoie (envoyé, identifiant du message).

    - Protection si SENDGRID_FROM_EMAIL contient par erreur plusieurs emails (virgule).
    - Support du Reply-To via settings.REPLY_TO_EMAIL (sinon SUPPORT_EMAIL).
    """
    if not to_email:
        logger.debug("Envoi email annulé : aucun destinataire.")
        return False, ""

    from_email = getattr(settings, "SENDGRID_FROM_EMAIL", "no-reply@hotelops.local")
    reply_to = getattr(settings, "REPLY_TO_EMAIL", "") or getattr(settings, "SUPPORT_EMAIL", "")
    if isinstance(from_email, str) and "," in from_email:
        from_email = from_email.split(",")[0].strip()

    final_html = _wrap_html(subject, text_body, html_body)
    api_key = getattr(settings, "SENDGRID_API_KEY", None)

    sent_via_sendgrid = False
    sent_via_django = False
    message_id = ""

    if api_key:
        sg_mail = Mail(
            from_email=from_email,
            to_emails=[to_email],
            subject=subject,
            plain_text_content=text_body or "",
            html_content=final_html,
        )
        if reply_to:
            sg_mail.reply_to = ReplyTo(reply_to)
        attachment = _build_sendgrid_attachment(filename, file_bytes or b"", mimetype)
        if attachment:
            sg_mail.attachment = attachment

        try:
            resp = SendGridAPIClient(api_key).send(sg_mail)
        except HTTPError as exc:
            status_code, body_snippet = _summarize_sendgrid_exception(exc)
            if status_code in (401, 403):
                logger.error(
                    "SendGrid AUTH error (%s) for %s. Vérifie SENDGRID_API_KEY (permission Mail Send). Body=%s",
                    status_code,
                    to_email,
                    body_snippet,
                )
            else:
                logger.warning("SendGrid envoi échoué (%s) status=%s body=%s", to_email, status_code, body_snippet)
        except OSError as exc:
            logger.warning("SendGrid injoignable (%s): %s", to_email, exc, exc_info=True)
        else:
            status_code = getattr(resp, "status_code", None)
            if status_code and int(status_code) >= 400:
                logger.warning(
                    "SendGrid responded error: to=%s status=%s body=%s",
                    to_email,
                    status_code,
                    str(getattr(resp, "body", ""))[:800],
                )
            else:
                sent_via_sendgrid = True
                headers = getattr(resp, "headers", None) or {}
                message_id = headers.get("X-Message-Id", "") if hasattr(headers, "get") else ""
    else:
        logger.info("SendGrid non configuré (SENDGRID_API_KEY vide) : envoi via Django.")

    if not sent_via_sendgrid and fallback_to_django:
        message_id = make_msgid(domain=from_email.split("@")[-1] if "@" in from_email else None)
        msg = EmailMultiAlternatives(
            subject=subject,
            body=(text_body or ""),
            from_email=from_email,
            to=[to_email],
            reply_to=[reply_to] if reply_to else None,
            headers={"Message-ID": message_id},
        )
        msg.attach_alternative(final_html, "text/html")
        if file_bytes:
            msg.attach(filename or "attachment", file_bytes, mimetype)

        # send() renvoie le nombre d'emails envoyés
        sent_via_django = (msg.send(fail_silently=True) or 0) > 0
        if not sent_via_django:
            logger.warning("Django email fallback: 0 email envoyé (fail_silently=True).")
            message_id = ""

    sent = bool(sent_via_sendgrid or sent_via_django)
    logger.info(
        "Email send result: to=%s sendgrid=%s django_fallback=%s final=%s subject=%s",
        to_email,
        sent_via_sendgrid,
        sent_via_django,
        sent,
        subject,
    )
    return sent, message_id


def send_email_with_sendgrid(**kwargs) -> bool:
    sent, _ = send_email(**kwargs)
    return sent
