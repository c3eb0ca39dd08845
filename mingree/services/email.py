"""
Transactional emails for money events (escrow refunds, processed withdrawals).
Uses Resend if RESEND_API_KEY is set; otherwise a no-op so ledger operations
never fail because of email.
"""
import logging
import os
from decimal import Decimal

import resend

logger = logging.getLogger(__name__)

RESEND_API_KEY = os.getenv("RESEND_API_KEY", "").strip()
FROM_EMAIL = os.getenv("FROM_EMAIL", "Mingree <no-reply@mingree.com>")
APP_NAME = os.getenv("APP_NAME", "Mingree")


def _send(to_email: str, subject: str, html: str) -> bool:
    if not RESEND_API_KEY or not to_email:
        return False

    resend.api_key = RESEND_API_KEY
    try:
        params = {
            "from": FROM_EMAIL,
            "to": [to_email],
            "subject": subject,
            "html": html.strip(),
        }
        resend.Emails.send(params)
        logger.info("Email '%s' sent to %s", subject, to_email)
        return True
    except Exception as e:
        logger.warning("Failed to send '%s' to %s: %s", subject, to_email, e)
        return False


def send_escrow_refund_email(to_email: str, campaign_title: str, amount: Decimal) -> bool:
    """Tell a sponsor that unused campaign budget went back to their wallet."""
    subject = f"{APP_NAME}: INR {amount:.2f} refunded for '{campaign_title}'"
    html = f"""
    <p>Hi,</p>
    <p>Your campaign <strong>{campaign_title}</strong> has reached its deadline.</p>
    <p>The unused budget of <strong>INR {amount:.2f}</strong> has been returned to your {APP_NAME} wallet.</p>
    <p>Thank you for using {APP_NAME}.</p>
    """
    return _send(to_email, subject, html)


def send_withdrawal_processed_email(to_email: str, amount: Decimal, net_amount: Decimal, utr_number: str) -> bool:
    subject = f"{APP_NAME}: your withdrawal of INR {amount:.2f} has been processed"
    html = f"""
    <p>Hi,</p>
    <p>Your withdrawal request has been processed.</p>
    <p><strong>Requested:</strong> INR {amount:.2f}<br>
    <strong>Transferred (after GST):</strong> INR {net_amount:.2f}<br>
    <strong>UTR:</strong> {utr_number}</p>
    <p>Thank you for using {APP_NAME}.</p>
    """
    return _send(to_email, subject, html)
