"""Email integration utilities for sending emails."""

import asyncio
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional, List
import logging

import httpx

from core.config import settings
from core.utils.formatting import format_currency, mask_email

logger = logging.getLogger(__name__)

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"


class EmailService:
    """
    Outbound email via SMTP, SendGrid or the log (console provider).

    ``send_email`` never raises: delivery problems are logged and reported
    as False so callers can record that the notification did not go out.
    """

    def __init__(
        self,
        provider: Optional[str] = None,
        smtp_host: Optional[str] = None,
        smtp_port: Optional[int] = None,
        smtp_user: Optional[str] = None,
        smtp_password: Optional[str] = None,
        sendgrid_api_key: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
    ):
        """
        Initialize email service.

        Args:
            provider: smtp, sendgrid or console
            smtp_host: SMTP server host
            smtp_port: SMTP server port
            smtp_user: SMTP username
            smtp_password: SMTP password
            sendgrid_api_key: SendGrid API key
            from_email: Default sender email
            from_name: Default sender name
        """
        self.provider = provider or settings.email_provider
        self.smtp_host = smtp_host or settings.smtp_host
        self.smtp_port = smtp_port or settings.smtp_port
        self.smtp_user = smtp_user or settings.smtp_user
        self.smtp_password = smtp_password or settings.smtp_password
        self.sendgrid_api_key = sendgrid_api_key or settings.sendgrid_api_key
        self.from_email = from_email or settings.from_email
        self.from_name = from_name or settings.from_name

    def send_email(
        self,
        to_email: str | List[str],
        subject: str,
        body: str,
        html: bool = False,
        reply_to: Optional[str] = None,
    ) -> bool:
        """
        Send an email.

        Args:
            to_email: Recipient email address(es)
            subject: Email subject
            body: Email body
            html: Whether body is HTML
            reply_to: Reply-to email address

        Returns:
            True if email sent successfully
        """
        recipients = to_email if isinstance(to_email, list) else [to_email]
        try:
            if self.provider == "sendgrid":
                self._send_sendgrid(recipients, subject, body, html, reply_to)
            elif self.provider == "smtp":
                self._send_smtp(recipients, subject, body, html, reply_to)
            else:
                logger.info(
                    "Email (console provider) to %s: %s",
                    ", ".join(mask_email(r) for r in recipients),
                    subject,
                )
            logger.info("Email sent to %s", ", ".join(mask_email(r) for r in recipients))
            return True
        except Exception as e:
            logger.error(f"Failed to send email via {self.provider}: {e}")
            return False

    async def send(
        self,
        to_email: str | List[str],
        subject: str,
        body: str,
        html: bool = False,
        reply_to: Optional[str] = None,
    ) -> bool:
        """Async wrapper so request handlers do not block on SMTP/HTTP."""
        return await asyncio.to_thread(self.send_email, to_email, subject, body, html, reply_to)

    async def send_template(self, to_email: str, template: dict) -> bool:
        return await self.send(
            to_email, template["subject"], template["body"], html=template.get("html", False)
        )

    def _send_smtp(
        self,
        recipients: List[str],
        subject: str,
        body: str,
        html: bool,
        reply_to: Optional[str],
    ) -> None:
        msg = MIMEMultipart()
        msg['From'] = f"{self.from_name} <{self.from_email}>"
        msg['To'] = ", ".join(recipients)
        msg['Subject'] = subject
        if reply_to:
            msg['Reply-To'] = reply_to
        msg.attach(MIMEText(body, 'html' if html else 'plain'))

        with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30) as server:
            server.starttls()
            if self.smtp_user and self.smtp_password:
                server.login(self.smtp_user, self.smtp_password)
            server.send_message(msg, from_addr=self.from_email, to_addrs=recipients)

    def _send_sendgrid(
        self,
        recipients: List[str],
        subject: str,
        body: str,
        html: bool,
        reply_to: Optional[str],
    ) -> None:
        if not self.sendgrid_api_key:
            raise RuntimeError("SENDGRID_API_KEY is not configured")

        payload = {
            "personalizations": [{"to": [{"email": r} for r in recipients]}],
            "from": {"email": self.from_email, "name": self.from_name},
            "subject": subject,
            "content": [{"type": "text/html" if html else "text/plain", "value": body}],
        }
        if reply_to:
            payload["reply_to"] = {"email": reply_to}

        response = httpx.post(
            SENDGRID_URL,
            json=payload,
            headers={"Authorization": f"Bearer {self.sendgrid_api_key}"},
            timeout=30.0,
        )
        response.raise_for_status()


def get_email_service() -> EmailService:
    """Build an email service from settings."""
    return EmailService()


# Pre-configured email templates
class EmailTemplates:
    """Pre-configured email templates for every workflow notification."""

    @staticmethod
    def _wrap(greeting: str, paragraphs: List[str]) -> str:
        inner = "\n".join(f"<p>{p}</p>" for p in paragraphs)
        return f"""
                <html>
                <body>
                    <h2>{greeting}</h2>
                    {inner}
                    <p>Best regards,<br>{settings.from_name}</p>
                </body>
                </html>
            """

    @staticmethod
    def screening_request(candidate_name: str, position: str, form_url: str) -> dict:
        """Screening questionnaire email. Replies to it are parsed by the inbound webhook."""
        return {
            'subject': f'Screening Questions - {position}',
            'body': EmailTemplates._wrap(f"Hi {candidate_name},", [
                f"Thank you for your interest in the {position} position.",
                "Please answer a few short screening questions, either by replying to this "
                "email with numbered answers or through the form below:",
                "1. How many years of relevant experience do you have?<br>"
                "2. What is your current and expected salary (e.g. in LPA)?<br>"
                "3. What is your notice period / earliest joining date?<br>"
                "4. Are you willing to relocate if required?<br>"
                "5. Which of the required skills have you used professionally?",
                f'<a href="{form_url}">{form_url}</a>',
            ]),
            'html': True,
        }

    @staticmethod
    def interview_invitation(candidate_name: str, position: str, interview_url: str, expires_in_days: int) -> dict:
        """AI interview invitation email template."""
        return {
            'subject': f'Interview Invitation - {position}',
            'body': EmailTemplates._wrap(f"Hi {candidate_name},", [
                f"We're excited to invite you to an online interview for the {position} position.",
                "The interview is conducted by our AI interviewer and takes about 30 minutes. "
                "You can take it at any time that suits you.",
                f'Start your interview here: <a href="{interview_url}">{interview_url}</a>',
                f"This link is personal and expires in {expires_in_days} days.",
            ]),
            'html': True,
        }

    @staticmethod
    def screening_rejection(candidate_name: str, position: str) -> dict:
        return {
            'subject': f'Your application for {position}',
            'body': EmailTemplates._wrap(f"Hi {candidate_name},", [
                f"Thank you for taking the time to answer our questions about the {position} position.",
                "After careful review we have decided not to move forward with your application "
                "at this time. We will keep your details on file for future openings.",
            ]),
            'html': True,
        }

    @staticmethod
    def next_round_invitation(candidate_name: str, position: str, round_name: str, scheduled_for: str) -> dict:
        return {
            'subject': f'Next Interview Round - {position}',
            'body': EmailTemplates._wrap(f"Hi {candidate_name},", [
                f"Congratulations! You have progressed to the {round_name} round for the {position} position.",
                f"It is tentatively scheduled for {scheduled_for}. We will confirm the details shortly.",
            ]),
            'html': True,
        }

    @staticmethod
    def job_offer(candidate_name: str, position: str, base_salary: float, currency: str, start_date: str) -> dict:
        return {
            'subject': f'Job Offer - {position}',
            'body': EmailTemplates._wrap(f"Dear {candidate_name},", [
                f"We are delighted to offer you the position of {position}.",
                f"<strong>Base salary:</strong> {format_currency(base_salary, currency)}<br>"
                f"<strong>Proposed start date:</strong> {start_date}",
                "Our team will be in touch with the formal offer letter and next steps.",
            ]),
            'html': True,
        }

    @staticmethod
    def onboarding_welcome(candidate_name: str, position: str, task_titles: List[str]) -> dict:
        items = "".join(f"<li>{t}</li>" for t in task_titles)
        return {
            'subject': f'Welcome aboard - {position}',
            'body': EmailTemplates._wrap(f"Welcome, {candidate_name}!", [
                f"Thank you for accepting our offer for the {position} position.",
                f"Here is what happens next:<ul>{items}</ul>",
            ]),
            'html': True,
        }

    @staticmethod
    def drive_invitation(candidate_name: str, drive_name: str, register_url: str) -> dict:
        return {
            'subject': f'Registration - {drive_name}',
            'body': EmailTemplates._wrap(f"Hi {candidate_name},", [
                f"You have been invited to the {drive_name} recruitment drive.",
                f'Please register here: <a href="{register_url}">{register_url}</a>',
            ]),
            'html': True,
        }

    @staticmethod
    def drive_test_invitation(candidate_name: str, drive_name: str, round_name: str, test_url: str, duration_minutes: int) -> dict:
        return {
            'subject': f'{round_name} Test - {drive_name}',
            'body': EmailTemplates._wrap(f"Hi {candidate_name},", [
                f"Your {round_name.lower()} test for {drive_name} is ready.",
                f"You will have {duration_minutes} minutes once you begin.",
                f'Take the test here: <a href="{test_url}">{test_url}</a>',
                "The link is valid for 24 hours.",
            ]),
            'html': True,
        }

    @staticmethod
    def drive_rejection(candidate_name: str, drive_name: str, round_name: str) -> dict:
        return {
            'subject': f'Update on {drive_name}',
            'body': EmailTemplates._wrap(f"Hi {candidate_name},", [
                f"Thank you for taking part in the {round_name.lower()} round of {drive_name}.",
                "Unfortunately you did not reach the qualifying score for the next round this time.",
            ]),
            'html': True,
        }
