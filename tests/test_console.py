"""
Tests for Console Input

Tests for the cancellable line reader. A pipe stands in for the terminal.
"""

import asyncio
import os

import pytest

from src.chat_client import ConsoleReader


@pytest.fixture
def pipe():
    read_fd, write_fd = os.pipe()
    fds = {"read": read_fd, "write": write_fd}
    yield fds
    for fd in (fds["write"], fds["read"]):
        if fd is not None:
            try:
                os.close(fd)
            except OSError:
                pass


def make_reader(pipe, prompts=None):
    sink = prompts if prompts is not None else []
    return ConsoleReader(fd=pipe["read"], encoding="utf-8", write=sink.append)


@pytest.mark.asyncio
async def test_read_line_strips_newline(pipe):
    """Test that the line ending is removed."""
    reader = make_reader(pipe)
    os.write(pipe["write"], b"hello\n")

    line = await reader.read_line("> ", asyncio.Event())
    assert line == "hello"


@pytest.mark.asyncio
async def test_read_line_strips_crlf(pipe):
    """Test that Windows line endings are removed."""
    reader = make_reader(pipe)
    os.write(pipe["write"], b"hello\r\n")

    assert await reader.read_line("> ", asyncio.Event()) == "hello"


@pytest.mark.asyncio
async def test_read_line_keeps_following_lines(pipe):
    """Test that lines arriving together are returned one at a time."""
    reader = make_reader(pipe)
    os.write(pipe["write"], b"1\nU2\n")
    cancel = asyncio.Event()

    assert await reader.read_line("> ", cancel) == "1"
    assert await reader.read_line("> ", cancel) == "U2"


@pytest.mark.asyncio
async def test_read_line_decodes_utf8(pipe):
    """Test that UTF-8 input is decoded."""
    reader = make_reader(pipe)
    os.write(pipe["write"], "Привет\n".encode("utf-8"))

    assert await reader.read_line("> ", asyncio.Event()) == "Привет"


@pytest.mark.asyncio
async def test_read_line_eof_returns_empty(pipe):
    """Test that EOF reads as an empty line."""
    reader = make_reader(pipe)
    os.close(pipe["write"])
    pipe["write"] = None

    assert await reader.read_line("> ", asyncio.Event()) == ""


@pytest.mark.asyncio
async def test_read_line_shows_prompt(pipe):
    """Test that the prompt is written before reading."""
    prompts = []
    reader = make_reader(pipe, prompts)
    os.write(pipe["write"], b"x\n")

    await reader.read_line("Введите:\n> ", asyncio.Event())
    assert prompts == ["Введите:\n> "]


@pytest.mark.asyncio
async def test_read_line_already_cancelled(pipe):
    """Test that a set cancel event returns at once without prompting."""
    prompts = []
    reader = make_reader(pipe, prompts)
    cancel = asyncio.Event()
    cancel.set()

    assert await reader.read_line("> ", cancel) == ""
    assert prompts == []


@pytest.mark.asyncio
async def test_cancel_interrupts_pending_read(pipe):
    """Test that cancellation returns while the read is still blocked."""
    reader = make_reader(pipe)
    cancel = asyncio.Event()
    asyncio.get_running_loop().call_later(0.05, cancel.set)

    line = await asyncio.wait_for(reader.read_line("> ", cancel), timeout=1.0)
    assert line == ""
