# notifications/email_utils.py
import logging
import smtplib

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)


def build_client_email(client, branch, title: str, message: str):
    """
    (subject, body) письма клиенту: тема с названием филиала,
    в подписи - контакты филиала, если они заполнены.
    """
    subject = f"[{branch.name}] {title}" if branch else title
    lines = [f"Здравствуйте, {client.name}!", "", message]

    if branch:
        contacts = ", ".join(filter(None, [branch.address, branch.phone]))
        lines += ["", f"Коворкинг «{branch.name}»" + (f" ({contacts})" if contacts else "")]

    return subject, "\n".join(lines)


def send_client_email(client, branch, title: str, message: str) -> bool:
    """
    Письмо клиенту о событии по его брони / счёту.
    False - у клиента нет email или SMTP отказал.
    """
    if not getattr(client, "email", None):
        return False

    subject, body = build_client_email(client, branch, title, message)

    try:
        send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [client.email], fail_silently=False)
    except (smtplib.SMTPException, OSError) as exc:
        logger.warning("Email to client %s (%s) failed: %s", client.pk, client.email, exc)
        return False
    return True
