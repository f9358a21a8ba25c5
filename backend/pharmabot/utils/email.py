from __future__ import annotations

import logging
import os
import secrets
import smtplib
from email.message import EmailMessage

import resend
from pydantic import EmailStr, TypeAdapter, ValidationError


_logger = logging.getLogger(__name__)
_EMAIL_ADAPTER = TypeAdapter(EmailStr)


class EmailDeliveryError(RuntimeError):
    pass


def _smtp_settings() -> dict:
    username = os.getenv("SMTP_USERNAME", "").strip()
    return {
        "host": os.getenv("SMTP_HOST", "").strip(),
        "port": int(os.getenv("SMTP_PORT", "587")),
        "username": username,
        "password": os.getenv("SMTP_PASSWORD", "").strip(),
        "from_email": os.getenv("SMTP_FROM", "").strip() or username,
    }


def _send_via_resend(to_email: str, subject: str, html: str) -> tuple[bool, str | None]:
    api_key = os.getenv("RESEND_API_KEY", "").strip()
    from_email = os.getenv("RESEND_FROM", "").strip()
    if not api_key or not from_email:
        return False, "Resend not configured"
    try:
        resend.api_key = api_key
        resend.Emails.send(
            {
                "from": from_email,
                "to": to_email,
                "subject": subject,
                "html": html,
            }
        )
        return True, None
    except Exception as exc:
        return False, str(exc)


def _send_via_smtp(to_email: str, subject: str, body: str, html: str | None = None) -> tuple[bool, str | None]:
    cfg = _smtp_settings()
    if not cfg["host"] or not cfg["from_email"]:
        return False, "SMTP not configured"

    sender_name = os.getenv("EMAIL_FROM_NAME", "").strip()
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = f'"{sender_name}" <{cfg["from_email"]}>' if sender_name else cfg["from_email"]
    msg["To"] = to_email
    msg.set_content(body)
    if html:
        msg.add_alternative(html, subtype="html")

    try:
        with smtplib.SMTP(cfg["host"], cfg["port"], timeout=10) as server:
            server.starttls()
            if cfg["username"] and cfg["password"]:
                server.login(cfg["username"], cfg["password"])
            server.send_message(msg)
        return True, None
    except Exception as exc:
        return False, str(exc)


def send_email(to_email: str, subject: str, body: str, html: str | None = None) -> tuple[bool, str | None]:
    if html is None:
        html = body if "<" in body else f"<p>{body.replace(chr(10), '<br/>')}</p>"
    ok, error = _send_via_resend(to_email, subject, html)
    if ok:
        return True, None
    return _send_via_smtp(to_email, subject, body, html)


def generate_verification_token() -> str:
    return secrets.token_hex(32)


def build_verification_email(token: str) -> tuple[str, str, str]:
    backend_url = (os.getenv("BACKEND_URL") or "http://localhost:8000").rstrip("/")
    support_email = os.getenv("SUPPORT_EMAIL", "").strip() or "support@localhost"
    verification_url = f"{backend_url}/api/auth/verify-email?token={token}"

    subject = "Verify Your Email Address"
    html = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #2563eb;">Welcome to our pharmacy marketplace!</h2>
  <p>Please verify your email address to get started:</p>
  <div style="text-align: center; margin: 20px 0;">
    <a href="{verification_url}"
       style="background-color: #2563eb; color: white; padding: 12px 24px;
              text-decoration: none; border-radius: 4px; font-weight: bold;">
      Verify Email
    </a>
  </div>
  <p>Or copy and paste this link into your browser:</p>
  <p style="word-break: break-all;">{verification_url}</p>
  <p>This link will expire in 24 hours.</p>
  <hr style="border: none; border-top: 1px solid #e5e7eb; margin: 20px 0;">
  <p style="font-size: 0.9em; color: #6b7280;">
    If you didn't request this email, please ignore it or contact
    <a href="mailto:{support_email}">our support team</a>.
  </p>
</div>
""".strip()
    text = (
        f"Please verify your email by clicking this link: {verification_url}\n\n"
        "This link expires in 24 hours."
    )
    return subject, html, text


def send_verification_email(email: str, token: str) -> None:
    cleaned = (email or "").strip()
    try:
        _EMAIL_ADAPTER.validate_python(cleaned)
    except ValidationError as exc:
        raise EmailDeliveryError(f"Invalid recipient email: {cleaned!r}") from exc

    subject, html, text = build_verification_email(token)
    ok, error = send_email(cleaned, subject, text, html)
    if not ok:
        _logger.error("verification email failed to=%s error=%s", cleaned, error)
        raise EmailDeliveryError("Failed to send verification email")
    _logger.info("verification email sent to=%s", cleaned)


def check_email_config() -> bool:
    cfg = _smtp_settings()
    if not cfg["host"]:
        return False
    try:
        with smtplib.SMTP(cfg["host"], cfg["port"], timeout=10) as server:
            server.starttls()
            if cfg["username"] and cfg["password"]:
                server.login(cfg["username"], cfg["password"])
            code, _ = server.noop()
        return code == 250
    except (smtplib.SMTPException, OSError) as exc:
        _logger.warning("email server connection failed host=%s error=%s", cfg["host"], exc)
        return False
