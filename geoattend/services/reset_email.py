"""Password-reset email: recovery link from the identity API, delivered via Resend."""
import logging
import requests
from typing import Optional
from geoattend.core.backend import BackendClient
from geoattend.core.config import settings
from geoattend.core.errors import BackendError, FunctionError

logger = logging.getLogger(__name__)

LINK_EXPIRY_TEXT = "This link expires in 1 hour."


def build_reset_email_html(reset_link: str) -> tuple[str, str]:
    """Return (subject, html_body) for a reset-password email."""
    app_name = settings.APP_NAME
    subject = f"Reset Password - {app_name}"
    html = f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,sans-serif;background-color:#f4f4f5;margin:0;padding:20px;">
  <div style="max-width:480px;margin:0 auto;background-color:#ffffff;border-radius:12px;padding:40px;box-shadow:0 4px 6px rgba(0,0,0,0.1);">
    <h1 style="color:#18181b;font-size:24px;margin-bottom:16px;text-align:center;">Reset Password</h1>
    <p style="color:#52525b;font-size:16px;line-height:1.6;margin-bottom:24px;">
      Hello! You are receiving this email because a password reset was requested for your {app_name} account.
    </p>
    <div style="text-align:center;margin:32px 0;">
      <a href="{reset_link}" style="display:inline-block;background-color:#2563eb;color:#ffffff;text-decoration:none;padding:14px 32px;border-radius:8px;font-weight:600;font-size:16px;">
        Reset Password
      </a>
    </div>
    <p style="color:#71717a;font-size:14px;line-height:1.5;margin-top:24px;">
      If you did not request a password reset, ignore this email. {LINK_EXPIRY_TEXT}
    </p>
    <hr style="border:none;border-top:1px solid #e4e4e7;margin:24px 0;">
    <p style="color:#a1a1aa;font-size:12px;text-align:center;">{app_name} - GPS Attendance System</p>
  </div>
</body>
</html>"""
    return subject, html


def send_email(to_email: str, subject: str, html_body: str) -> dict:
    """POST one email to Resend. Raises FunctionError(500) on any failure."""
    if not settings.RESEND_API_KEY:
        raise FunctionError(500, "RESEND_API_KEY is not configured")

    try:
        resp = requests.post(
            settings.RESEND_API_URL,
            headers={
                "Authorization": f"Bearer {settings.RESEND_API_KEY}",
                "Content-Type": "application/json",
            },
            json={
                "from": f"{settings.RESEND_FROM_NAME} <{settings.RESEND_FROM_EMAIL}>",
                "to": [to_email],
                "subject": subject,
                "html": html_body,
            },
            timeout=30,
        )
    except requests.RequestException as e:
        logger.error("Failed to reach Resend: %s", e)
        raise FunctionError(500, f"Failed to send email: {e}")

    try:
        result = resp.json()
    except ValueError:
        result = {"message": resp.text[:300]}

    if not resp.ok:
        logger.error("Resend error %s: %s", resp.status_code, result)
        raise FunctionError(500, result.get("message") or "Failed to send email")

    logger.info("Email sent to %s - id: %s", to_email, result.get("id", ""))
    return result


def send_reset_password(backend: BackendClient, email: Optional[str], redirect_to: Optional[str] = None) -> dict:
    email = (email or "").strip().lower()
    if not email:
        raise FunctionError(400, "Email is required")
    logger.info("Processing reset password for email: %s", email)

    if not settings.RESEND_API_KEY:
        raise FunctionError(500, "RESEND_API_KEY is not configured")

    try:
        reset_link = backend.generate_recovery_link(email, redirect_to or f"{settings.APP_URL.rstrip('/')}/auth")
    except BackendError as e:
        logger.error("Recovery link error: %s", e)
        raise FunctionError(500, e.message)
    if not reset_link:
        raise FunctionError(500, "Failed to generate reset link")

    subject, html_body = build_reset_email_html(reset_link)
    send_email(email, subject, html_body)
    return {"success": True, "message": "Reset password email sent"}
