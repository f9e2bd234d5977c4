"""
Terminal Prompts

Menu strings shown to the user and the formatting of received messages.
"""

from datetime import datetime
from typing import Optional

MENU_PROMPT = (
    "1. Создать новый чат с другим пользователем\n"
    "2. Войти в чат с пользователем\n"
    "\n"
    "Введите ваш выбор (для выхода введите exit или нажмите ctrl+C):\n"
    "> "
)

PEER_PROMPT = (
    "Введите ID пользователя, с которым вы бы хотели начать чат\n"
    "или введите return для выхода в предыдущее меню.\n"
    "> "
)

CHAT_ID_PROMPT = (
    "Введите ID чата для начала общения\n"
    "или введите return для выхода в предыдущее меню.\n"
    "> "
)

MESSAGE_PROMPT = "Вводите сообщения для отправки:\n> "

INVALID_CHOICE = "Неверный выбор. Попробуйте снова."
EXITING = "Выход из программы"
CHAT_CREATED = "Чат создан, ID чата: {chat_id}"
SIGNAL_RECEIVED = "Получен SIGTERM или SIGINT. Завершаем чат."

CHOICE_CREATE_CHAT = "1"
CHOICE_ENTER_CHAT = "2"
CHOICE_EXIT = "exit"
CHOICE_RETURN = "return"

TIMESTAMP_FORMAT = "%d.%m.%Y %H:%M"


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """Render a local time as DD.MM.YYYY HH:MM (defaults to now)."""
    if moment is None:
        moment = datetime.now()
    return moment.strftime(TIMESTAMP_FORMAT)


def format_message(
    from_id: str, body: str, moment: Optional[datetime] = None
) -> str:
    """Format a received message line."""
    return f"{from_id} {format_timestamp(moment)}: {body}"
