"""Notification service (Mailgun/SendGrid email). Delivery is best-effort: callers report, never raise."""
import logging

import httpx

from realty.config import get_settings

log = logging.getLogger("uvicorn.error")

MAILGUN_US_BASE = "https://api.mailgun.net"
MAILGUN_EU_BASE = "https://api.eu.mailgun.net"

BRAND = "Realty"


def send_email(to_email: str, subject: str, html_content: str, text_content: str | None = None) -> bool:
    """Send email via Mailgun (preferred) or SendGrid. Returns True if the provider accepted it."""
    settings = get_settings()
    if settings.mailgun_api_key and settings.mailgun_domain:
        return _send_email_mailgun(to_email, subject, html_content, text_content=text_content, settings=settings)
    if settings.sendgrid_api_key:
        return _send_email_sendgrid(to_email, subject, html_content, text_content=text_content, settings=settings)
    log.warning(
        "[Email] NOT SENT: to=%s subject=%s. Set MAILGUN_API_KEY and MAILGUN_DOMAIN (or SENDGRID_API_KEY) in .env.",
        to_email,
        subject,
    )
    return False


def _send_email_mailgun(to_email: str, subject: str, html_content: str, text_content: str | None = None, settings=None) -> bool:
    if settings is None:
        settings = get_settings()
    base = (settings.mailgun_base_url or MAILGUN_US_BASE).strip().rstrip("/")
    domain = (settings.mailgun_domain or "").strip().lower()
    from_addr = (settings.mailgun_from_email or "").strip()
    from_domain = from_addr.split("@")[-1].lower() if "@" in from_addr else ""
    if domain and from_domain != domain:
        # Mailgun drops mail whose sender domain does not match the sending domain
        from_addr = f"noreply@{domain}"
    data = {
        "from": f"{settings.mailgun_from_name} <{from_addr}>",
        "to": to_email,
        "subject": subject,
        "text": text_content or "",
        "html": html_content or "",
    }
    try:
        with httpx.Client(timeout=10.0) as client:
            r = client.post(f"{base}/v3/{domain}/messages", auth=("api", settings.mailgun_api_key), data=data)
            if r.status_code == 401 and base == MAILGUN_US_BASE:
                log.info("[Mailgun] 401 with US endpoint. Retrying with EU endpoint...")
                r = client.post(f"{MAILGUN_EU_BASE}/v3/{domain}/messages", auth=("api", settings.mailgun_api_key), data=data)
    except httpx.HTTPError as e:
        log.warning("[Mailgun] Request failed: to=%s error=%s: %s", to_email, type(e).__name__, e)
        return False
    if 200 <= r.status_code < 300:
        try:
            msg_id = (r.json() or {}).get("id", "")
        except ValueError:
            msg_id = ""
        log.info("[Mailgun] Sent: to=%s id=%s", to_email, msg_id)
        return True
    log.warning("[Mailgun] API failed: status=%s to=%s body=%s", r.status_code, to_email, r.text[:500])
    return False


def _send_email_sendgrid(to_email: str, subject: str, html_content: str, text_content: str | None = None, settings=None) -> bool:
    if settings is None:
        settings = get_settings()
    from sendgrid import SendGridAPIClient
    from sendgrid.helpers.mail import Mail

    message = Mail(
        from_email=(settings.sendgrid_from_email, settings.sendgrid_from_name),
        to_emails=to_email,
        subject=subject,
        html_content=html_content,
        plain_text_content=text_content or "",
    )
    try:
        response = SendGridAPIClient(settings.sendgrid_api_key).send(message)
    except Exception as e:  # sendgrid raises python_http_client errors of many types
        log.warning("[SendGrid] Send failed: to=%s error=%s: %s", to_email, type(e).__name__, e)
        return False
    return 200 <= getattr(response, "status_code", 0) < 300


def send_agent_invitation_email(to_email: str, first_name: str | None, link: str, temp_password: str | None = None) -> bool:
    """Invitation to join as an agent. With a temporary password the account already exists
    and the link is for signing in; otherwise the link leads to registration."""
    name = (first_name or "").strip() or "Agent"
    if temp_password:
        subject = f"Welcome to {BRAND} - Agent Account"
        text = (
            f"Hi {name}, an agent account has been created for you.\n"
            f"Email: {to_email}\nTemporary password: {temp_password}\n"
            f"Sign in at {link} and change your password."
        )
        html = f"""
    <p>Hi {name},</p>
    <p>An agent account has been created for you on {BRAND}.</p>
    <p><strong>Email:</strong> {to_email}<br><strong>Temporary password:</strong> {temp_password}</p>
    <p><a href="{link}">Sign in</a> and change your password.</p>
    """
    else:
        subject = f"You've been invited to join {BRAND} as an Agent"
        text = f"Hi {name}, you've been invited to join {BRAND} as an agent. Create your account: {link} (link expires in 7 days)."
        html = f"""
    <p>Hi {name},</p>
    <p>You've been invited to join {BRAND} as an agent.</p>
    <p><a href="{link}">Create your account</a>. This link expires in 7 days.</p>
    """
    return send_email(to_email, subject, html, text_content=text)


def send_account_credentials_email(to_email: str, first_name: str | None, role_label: str, temp_password: str, login_link: str) -> bool:
    name = (first_name or "").strip() or "there"
    subject = f"Welcome to {BRAND} - {role_label} Account"
    text = (
        f"Hi {name}, your {role_label.lower()} account is ready.\n"
        f"Email: {to_email}\nTemporary password: {temp_password}\nSign in: {login_link}"
    )
    html = f"""
    <p>Hi {name},</p>
    <p>Your {role_label.lower()} account on {BRAND} is ready.</p>
    <p><strong>Email:</strong> {to_email}<br><strong>Temporary password:</strong> {temp_password}</p>
    <p><a href="{login_link}">Sign in</a> and change your password.</p>
    """
    return send_email(to_email, subject, html, text_content=text)


def send_password_reset_email(to_email: str, first_name: str | None, reset_link: str) -> bool:
    name = (first_name or "").strip() or "User"
    subject = f"Password Reset Request - {BRAND}"
    text = f"Hi {name}, reset your password here: {reset_link}. The link expires in 1 hour. If you did not request this, ignore this email."
    html = f"""
    <p>Hi {name},</p>
    <p>We received a request to reset your password.</p>
    <p><a href="{reset_link}">Reset password</a> (expires in 1 hour).</p>
    <p>If you did not request this, you can ignore this email.</p>
    """
    return send_email(to_email, subject, html, text_content=text)
