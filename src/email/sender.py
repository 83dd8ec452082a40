from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"
CONFIRMATION_SUBJECT = "Founding Access Request Received"
PRODUCT_NAME = "Sidekick"


def _build_confirmation_html(product_name: str) -> str:
    return f"""\
<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"></head>
<body style="margin:0;padding:0;background-color:#f4f4f5;font-family:system-ui,-apple-system,sans-serif;">
  <table width="100%" cellpadding="0" cellspacing="0" style="padding:40px 20px;">
    <tr><td align="center">
      <table width="480" cellpadding="0" cellspacing="0"
        style="background:#ffffff;border-radius:12px;padding:40px;max-width:480px;">
        <tr><td style="font-size:15px;line-height:1.6;color:#4b5563;">
          <p style="margin:0 0 16px;">Hi there,</p>
          <p style="margin:0 0 16px;">Thanks for requesting founding access to {product_name}!
            We're reviewing requests and will invite teams in waves.</p>
          <p style="margin:0 0 16px;">This is not instant access: you'll receive setup instructions
            once selected.</p>
          <p style="margin:0;">Thanks,<br><strong>The {product_name} Team</strong></p>
        </td></tr>
      </table>
    </td></tr>
  </table>
</body>
</html>"""


def _build_plain_text(product_name: str) -> str:
    return (
        "Hi there,\n\n"
        f"Thanks for requesting founding access to {product_name}! "
        "We're reviewing requests and will invite teams in waves.\n\n"
        "This is not instant access: you'll receive setup instructions once selected.\n\n"
        f"Thanks,\nThe {product_name} Team"
    )


def _resend_id(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return "unknown"
    if isinstance(body, dict):
        return str(body.get("id", "unknown"))
    return "unknown"


async def send_confirmation_email(
    *,
    to: str,
    resend_api_key: str,
    email_from: str,
    http_timeout_seconds: float,
    product_name: str = PRODUCT_NAME,
) -> bool:
    """Send the founding-access confirmation email.

    Returns True if Resend accepted the message, False on any API or transport failure.
    """
    payload = {
        "from": email_from,
        "to": [to],
        "subject": CONFIRMATION_SUBJECT,
        "html": _build_confirmation_html(product_name),
        "text": _build_plain_text(product_name),
    }

    logger.info("Sending confirmation email to %s from %s", to, email_from)
    try:
        async with httpx.AsyncClient(timeout=http_timeout_seconds) as client:
            response = await client.post(
                RESEND_API_URL,
                json=payload,
                headers={
                    "Authorization": f"Bearer {resend_api_key}",
                    "Content-Type": "application/json",
                },
            )
        if response.status_code >= 400:
            logger.error("Resend API error %d: %s", response.status_code, response.text)
            return False
        logger.info("Confirmation email sent to %s (Resend ID: %s)", to, _resend_id(response))
        return True
    except httpx.HTTPError:
        logger.exception("Failed to send confirmation email to %s", to)
        return False
