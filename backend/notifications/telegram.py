# notifications/telegram.py
"""
Сообщения в чат администраторов филиала через Telegram Bot API.
"""
import html
import logging

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

API_URL = "https://api.telegram.org/bot{token}/sendMessage"
TIMEOUT_SECONDS = 5


def format_branch_message(branch, title: str, message: str) -> str:
    """HTML для parse_mode=HTML: пользовательский текст экранируется."""
    return (
        f"<b>{html.escape(title)}</b>\n"
        f"<i>{html.escape(branch.name)}</i>\n\n"
        f"{html.escape(message)}"
    )


def send_branch_message(branch, title: str, message: str) -> bool:
    """
    Отправка уведомления в чат филиала.

    False, если у филиала нет чата, не задан TELEGRAM_BOT_TOKEN
    или Telegram ответил ошибкой. Исключения наружу не выходят:
    уведомление не должно ронять операцию с бронью.
    """
    chat_id = getattr(branch, "telegram_chat_id", None)
    if not chat_id:
        return False

    token = getattr(settings, "TELEGRAM_BOT_TOKEN", None)
    if not token:
        logger.info("Telegram: token not configured, branch %s skipped", branch.pk)
        return False

    payload = {
        "chat_id": chat_id,
        "text": format_branch_message(branch, title, message),
        "parse_mode": "HTML",
        "disable_web_page_preview": True,
    }

    try:
        response = requests.post(API_URL.format(token=token), json=payload, timeout=TIMEOUT_SECONDS)
        if response.status_code != 200:
            logger.warning(
                "Telegram: branch %s chat %s rejected with %s: %s",
                branch.pk, chat_id, response.status_code, response.text,
            )
            return False
        return bool(response.json().get("ok"))
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Telegram: branch %s delivery failed: %s", branch.pk, exc)
        return False
