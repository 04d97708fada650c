"""
Email Service using Resend
Provides email functionality using MJML templates for responsive design
"""

import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, FRONTEND_URL, RESEND_API_KEY
from .email_templates import invitation_template

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


class EmailNotConfiguredError(Exception):
    """Raised when no e-mail provider is configured"""


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    result = mjml_to_html(mjml_content)
    if isinstance(result, dict):
        errors, html = result.get("errors"), result.get("html", "")
    else:
        # mjml-python returns a DotMap exposing .html and .errors
        errors, html = getattr(result, "errors", None), getattr(result, "html", "")
    if errors:
        logger.warning(f"MJML compilation warnings: {errors}")
    return html


def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
    tags: Optional[list[dict]] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address
        tags: Optional Resend tags

    Returns:
        Send response dict
    """
    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise EmailNotConfiguredError("Email service not configured")

    sender = from_address or EMAIL_FROM_ADDRESS
    if "@" not in sender:
        raise EmailNotConfiguredError(f"Invalid sender address: {sender}")

    recipients = [to] if isinstance(to, str) else to
    email_data = {
        "from": sender,
        "to": recipients,
        "subject": subject,
        "html": compile_mjml_to_html(mjml_content),
    }
    if tags:
        email_data["tags"] = tags

    logger.info(f"📧 Sending email via Resend to: {recipients}")
    response = resend.Emails.send(email_data)
    logger.info(f"✅ Email sent successfully via Resend: {response}")
    return response


def build_accept_url(token: str) -> str:
    return f"{FRONTEND_URL.rstrip('/')}/accept-invitation?token={token}"


def send_invitation_email(
    to: str,
    token: str,
    business_name: str,
    role: str,
    inviter_name: Optional[str] = None,
) -> Optional[dict]:
    """
    Send a team invitation. Runs as a background task, so failures are logged
    and never reach the request that created the invitation.
    """
    try:
        return send_email(
            to=to,
            subject=f"Invitación para unirte a {business_name}",
            mjml_content=invitation_template(
                business_name=business_name,
                role=role,
                accept_url=build_accept_url(token),
                inviter_name=inviter_name,
            ),
            tags=[{"name": "category", "value": "invitation"}],
        )
    except Exception as e:
        logger.error(f"❌ Failed to send invitation email to {to}: {e}")
        return None
