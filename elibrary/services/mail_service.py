# elibrary/services/mail_service.py
from flask import current_app
from flask_mail import Message

from elibrary.extensions import mail
from elibrary.models.notification import NotificationType

# only these notification types get an e-mail copy
MAILED_TYPES = (NotificationType.DUE_SOON, NotificationType.OVERDUE, NotificationType.FINE)


class MailService:
    @staticmethod
    def send_notification_copies(notifications) -> int:
        """
        Mails already-committed notifications to their owners.
        Disabled unless NOTIFY_BY_MAIL is set; a failed send never fails the caller.
        """
        if not current_app.config.get("NOTIFY_BY_MAIL"):
            return 0

        sent = 0
        for n in notifications:
            if n.type not in MAILED_TYPES:
                continue

            user = getattr(n, "user", None)
            to_email = getattr(user, "email", None) if user else None
            if not to_email:
                current_app.logger.warning(f"[mail] No e-mail for user #{n.user_id}, notification #{n.id} skipped")
                continue

            username = getattr(user, "username", "reader")
            body = f"Hello {username},\n\n{n.message}\n"
            try:
                mail.send(Message(subject=f"Library: {n.title}", recipients=[to_email], body=body))
                sent += 1
            except Exception as e:
                current_app.logger.warning(f"[mail] Could not send notification #{n.id} to {to_email}: {e}")

        return sent
