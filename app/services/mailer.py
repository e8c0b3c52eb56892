import asyncio
import html as html_lib
import logging
import re
import smtplib
import ssl
from email.message import EmailMessage
from enum import Enum
from typing import Optional

from app.config.settings import MailConfig, SmtpConfig

logger = logging.getLogger(__name__)

LINE_BREAKS = re.compile(r"[\r\n]+")


def single_line(value: str) -> str:
    """Header-safe text: line breaks collapse to a space"""
    return LINE_BREAKS.sub(" ", value).strip()


class MailPurpose(str, Enum):
    ADMIN = "admin"
    CUSTOMER = "customer"


class MailError(Exception):
    pass


class Mailer:
    """SMTP transport; one instance per purpose"""

    def __init__(self, smtp: SmtpConfig, purpose: MailPurpose):
        self.smtp = smtp
        self.purpose = purpose

    @property
    def configured(self) -> bool:
        return bool(self.smtp.host)

    @property
    def sender(self) -> str:
        address = self.smtp.from_email or self.smtp.user or "no-reply@example.com"
        return f"{self.smtp.from_name} <{address}>"

    def build_message(self, to: str, subject: str, html: str, text: Optional[str] = None) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = single_line(subject)
        msg["From"] = self.sender
        msg["To"] = to
        msg.set_content(text or "This message requires an HTML capable mail client.")
        msg.add_alternative(html, subtype="html")
        return msg

    async def send(self, to: str, subject: str, html: str, text: Optional[str] = None) -> None:
        if not self.configured:
            raise MailError(f"{self.purpose.value} mail transport is not configured")

        try:
            msg = self.build_message(to, subject, html, text)
            await asyncio.to_thread(self._deliver, msg)
        except (smtplib.SMTPException, OSError, ValueError) as e:
            raise MailError(str(e)) from e

    def _deliver(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.smtp.host, self.smtp.port, timeout=self.smtp.timeout) as s:
            if self.smtp.starttls:
                s.starttls(context=ssl.create_default_context())
            if self.smtp.user and self.smtp.password:
                s.login(self.smtp.user, self.smtp.password)
            s.send_message(msg)


def build_mailers(mail_config: MailConfig) -> dict:
    return {
        MailPurpose.ADMIN: Mailer(mail_config.admin, MailPurpose.ADMIN),
        MailPurpose.CUSTOMER: Mailer(mail_config.customer, MailPurpose.CUSTOMER),
    }


def otp_email(code: str, ttl_minutes: int) -> tuple:
    subject = "Your Admin Login OTP"
    html = f"""
        <div style="font-family: Arial, sans-serif; padding: 20px; max-width: 600px; margin: 0 auto;">
          <h2 style="color: #2563EB;">Admin Login Verification</h2>
          <p>Your OTP for admin login is:</p>
          <div style="background: #f3f4f6; padding: 20px; border-radius: 8px; text-align: center; margin: 20px 0;">
            <h1 style="color: #2563EB; margin: 0; letter-spacing: 8px;">{code}</h1>
          </div>
          <p style="color: #6b7280;">This OTP will expire in {ttl_minutes} minutes.</p>
          <p style="color: #6b7280; font-size: 12px;">If you didn't request this, please ignore this email.</p>
        </div>
    """
    text = f"Your OTP for admin login is {code}. It expires in {ttl_minutes} minutes."
    return subject, html, text


def purchase_email(name: Optional[str], product_name: str, download_url: Optional[str], store_name: str) -> tuple:
    greeting = f"Hi {name}," if name else "Hi,"
    link = download_url or "#"
    subject = single_line(f"Your {product_name} from {store_name}")
    safe_greeting = html_lib.escape(greeting)
    safe_product = html_lib.escape(product_name)
    safe_link = html_lib.escape(link)
    html = f"""
        <div style="font-family: Arial, sans-serif; padding: 20px; max-width: 600px; margin: 0 auto;">
          <h2 style="color: #2563EB;">Thank you for your purchase!</h2>
          <p>{safe_greeting}</p>
          <p>Your payment for <strong>{safe_product}</strong> was successful.</p>
          <p style="text-align: center; margin: 30px 0;">
            <a href="{safe_link}" style="background: #2563EB; color: #ffffff; padding: 12px 24px; border-radius: 6px; text-decoration: none;">
              Download your e-book
            </a>
          </p>
          <p style="color: #6b7280; font-size: 12px;">If the button does not work, copy this link: {safe_link}</p>
        </div>
    """
    text = f"{greeting}\n\nYour payment for {product_name} was successful.\nDownload: {link}\n"
    return subject, html, text
