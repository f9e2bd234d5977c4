"""Tests for terminal prompt formatting."""

from datetime import datetime

from src.chat_client.prompts import (
    CHAT_CREATED,
    format_message,
    format_timestamp,
)


def test_format_timestamp():
    """Test the DD.MM.YYYY HH:MM format."""
    assert format_timestamp(datetime(2024, 3, 5, 9, 7)) == "05.03.2024 09:07"


def test_format_timestamp_defaults_to_now():
    """Test that the current year is rendered, not a fixed one."""
    assert str(datetime.now().year) in format_timestamp()


def test_format_message():
    """Test the received message line."""
    line = format_message("U3", "y", datetime(2024, 12, 31, 23, 59))
    assert line == "U3 31.12.2024 23:59: y"


def test_chat_created_text():
    """Test the chat created confirmation."""
    assert CHAT_CREATED.format(chat_id="C7") == "Чат создан, ID чата: C7"
