"""Reminder e-mails: a notification listener that forwards ride_reminder rows through Resend."""
import html
import logging
import threading
import requests
from supabase import Client
from typing import Optional
from app.config import settings
from app.database.supabase_client import get_service_supabase
from app.modules.notifications import events
from app.modules.notifications.schemas import NotificationType

logger = logging.getLogger(__name__)


class ReminderEmailSender:
    def __init__(self, supabase: Client, api_key: str):
        self.supabase = supabase
        self.api_key = api_key

    def __call__(self, notification: dict) -> None:
        if notification.get("type") != NotificationType.RIDE_REMINDER.value:
            return
        threading.Thread(target=self.send, args=(notification,), daemon=True).start()

    def resolve_email(self, user_id: str):
        response = self.supabase.auth.admin.get_user_by_id(user_id)
        if not response or not response.user:
            return None
        return response.user.email

    def render_html(self, notification: dict) -> str:
        button = ""
        if notification.get("link"):
            button = (
                f'<a href="{html.escape(settings.site_url + notification["link"])}" '
                'style="display:inline-block;margin-top:16px;padding:10px 20px;'
                'background:#1a1a1a;color:#fff;text-decoration:none;border-radius:6px;">'
                'View details</a>'
            )
        return (
            '<div style="font-family:sans-serif;max-width:500px;margin:0 auto;">'
            f'<h2 style="color:#1a1a1a;">{html.escape(notification["title"])}</h2>'
            f'<p style="color:#555;font-size:16px;">{html.escape(notification["body"])}</p>'
            f'{button}'
            '<p style="color:#999;font-size:12px;margin-top:32px;">MotoBuddies</p>'
            '</div>'
        )

    def send(self, notification: dict) -> bool:
        """Send one reminder e-mail. Returns False when the address is unknown or Resend rejects it."""
        try:
            email = self.resolve_email(notification["user_id"])
        except Exception as e:
            logger.warning(f"Could not resolve e-mail for user {notification['user_id']}: {e}")
            return False
        if not email:
            logger.warning(f"No e-mail address for user {notification['user_id']}")
            return False

        try:
            response = requests.post(
                settings.resend_api_url,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "from": settings.email_from,
                    "to": [email],
                    "subject": notification["title"],
                    "html": self.render_html(notification),
                },
                timeout=settings.http_timeout_seconds,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to send reminder e-mail to user {notification['user_id']}: {e}")
            return False
        logger.info(f"Reminder e-mail sent for notification {notification.get('id')}")
        return True


def register_reminder_emails(supabase: Optional[Client] = None):
    """Subscribe the e-mail sender to every stored notification. Returns the unsubscribe function, or None when disabled."""
    if not settings.resend_api_key:
        logger.info("RESEND_API_KEY not configured, reminder e-mails disabled")
        return None
    supabase = supabase or get_service_supabase()
    return events.subscribe(events.ALL_USERS, ReminderEmailSender(supabase, settings.resend_api_key))
