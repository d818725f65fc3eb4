"""
Email Service for CMS Pro
=========================
Outbound mail for the account lifecycle:
- Administrator approval requests to the super admin
- "Account approved" notice to the newly approved administrator

Delivery goes through SMTP (aiosmtplib). ``send_email`` never raises: it
reports success as a bool and callers decide what a failure means.
"""

import aiosmtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from html import escape
from typing import Optional

from cmspro.core.config import settings, Settings
from cmspro.core.logging_config import logger

# Values shipped in .env.example; treated as "not configured"
PLACEHOLDER_CREDENTIALS = {"your-email@gmail.com", "your-app-password"}


class EmailService:
    """Async email service using SMTP"""

    def __init__(self, config: Settings = settings):
        self.smtp_host = config.SMTP_HOST
        self.smtp_port = config.SMTP_PORT
        self.smtp_user = config.SMTP_USER
        self.smtp_password = config.SMTP_PASSWORD
        self.smtp_timeout = config.SMTP_TIMEOUT
        self.from_email = config.EMAIL_FROM
        self.from_name = config.EMAIL_FROM_NAME
        self.app_name = config.APP_NAME

    @property
    def is_configured(self) -> bool:
        """Check if email service is properly configured"""
        if not (self.smtp_user and self.smtp_password):
            return False
        return not ({self.smtp_user, self.smtp_password} & PLACEHOLDER_CREDENTIALS)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """
        Send an email asynchronously.

        Returns True if successful, False otherwise.
        """
        if not self.is_configured:
            logger.warning("[Email] SMTP credentials not configured, cannot send email")
            return False

        message = MIMEMultipart("alternative")
        message["From"] = f"{self.from_name} <{self.from_email}>"
        message["To"] = to_email
        message["Subject"] = subject

        # Plain text first so clients prefer the HTML part
        if text_content:
            message.attach(MIMEText(text_content, "plain"))
        message.attach(MIMEText(html_content, "html"))

        try:
            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user,
                password=self.smtp_password,
                start_tls=True,
                timeout=self.smtp_timeout,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"[Email/SMTP] Failed to send email to {to_email}: {e}")
            return False

        logger.info(f"[Email/SMTP] Successfully sent email to {to_email}: {subject}")
        return True

    async def send_admin_approval_request(
        self,
        to_email: str,
        name: str,
        email: str,
        role: str,
        approval_url: str
    ) -> bool:
        """Ask the super admin to approve a newly registered administrator"""
        subject = f"Admin Approval Required - {self.app_name}"

        text_content = (
            "New account registration request:\n"
            f"Name: {name}\n"
            f"Email: {email}\n"
            f"Role: {role}\n\n"
            "Please approve this user by opening the link below:\n"
            f"{approval_url}\n\n"
            "This link will expire in 24 hours."
        )

        html_content = f"""
        <div style="font-family: sans-serif; padding: 20px; border: 1px solid #e2e8f0; border-radius: 12px; max-width: 600px;">
            <h2 style="color: #4f46e5;">New Registration Request</h2>
            <p>A new account has been registered and requires your approval.</p>
            <div style="background: #f8fafc; padding: 15px; border-radius: 8px; margin: 20px 0;">
                <p><strong>Name:</strong> {escape(name)}</p>
                <p><strong>Email:</strong> {escape(email)}</p>
                <p><strong>Role:</strong> {escape(role)}</p>
            </div>
            <a href="{escape(approval_url, quote=True)}" style="background: #4f46e5; color: white; padding: 12px 24px; text-decoration: none; border-radius: 8px; font-weight: bold; display: inline-block;">Approve User</a>
            <p style="color: #64748b; font-size: 12px; margin-top: 20px;">This link will expire in 24 hours.</p>
        </div>
        """

        return await self.send_email(to_email, subject, html_content, text_content)

    async def send_account_approved_email(self, to_email: str, name: str) -> bool:
        """Tell an administrator that their account is now active"""
        subject = f"Your {self.app_name} account is active"
        text_content = (
            f"Hi {name},\n\n"
            "Your administrator account has been approved. You can now log in to the portal."
        )
        html_content = f"""
        <div style="font-family: sans-serif; padding: 20px; max-width: 600px;">
            <h2 style="color: #4f46e5;">Account Approved!</h2>
            <p>Hi {escape(name)},</p>
            <p>Your administrator account has been approved. You can now log in to the portal.</p>
        </div>
        """
        return await self.send_email(to_email, subject, html_content, text_content)


# Singleton instance
email_service = EmailService()
