# utils/alerts.py
import logging
import os
import smtplib
from email.message import EmailMessage
from dotenv import load_dotenv

load_dotenv()

SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASS = os.getenv("SMTP_PASS")
ALERT_EMAIL = os.getenv("ALERT_EMAIL")
FROM_EMAIL = os.getenv("FROM_EMAIL", "beermenu-bot@localhost")

logger = logging.getLogger("scraper.alerts")


def alerts_configured():
    return bool(SMTP_HOST and ALERT_EMAIL)


def send_alert(subject, body):
    """
    E-mail the operator about a failed scrape run.

    Uses SMTP_SSL for port 465 and STARTTLS when the server offers it on any
    other port. Nothing is sent when SMTP_HOST or ALERT_EMAIL is unset.

    Args:
        subject (str): e-mail subject
        body (str): plain text body

    Returns:
        bool: True when the message was handed to the SMTP server

    Note:
        SMTP failures are logged, not raised: the alert is sent from the
        pipeline's failure path, which must still exit with its own status.
    """
    if not alerts_configured():
        logger.info("SMTP not configured, skipping alert")
        return False

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = FROM_EMAIL
    msg["To"] = ALERT_EMAIL
    msg.set_content(body)

    try:
        if SMTP_PORT == 465:
            with smtplib.SMTP_SSL(SMTP_HOST, SMTP_PORT) as server:
                if SMTP_USER and SMTP_PASS:
                    server.login(SMTP_USER, SMTP_PASS)
                server.send_message(msg)
                return True

        with smtplib.SMTP(SMTP_HOST, SMTP_PORT) as server:
            server.ehlo()
            if server.has_extn("starttls"):
                server.starttls()
                server.ehlo()
            if SMTP_USER and SMTP_PASS:
                server.login(SMTP_USER, SMTP_PASS)
            server.send_message(msg)
            return True
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"SMTP error while sending alert: {e}")
        return False
