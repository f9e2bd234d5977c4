"""Shared pytest fixtures for the chat client tests."""

import os

import pytest


@pytest.fixture
def clean_env(monkeypatch):
    """Remove chat client settings inherited from the developer's shell."""
    for key in list(os.environ):
        if key.startswith("CHAT_CLIENT_"):
            monkeypatch.delenv(key)
    return monkeypatch
