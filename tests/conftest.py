"""Pytest configuration and shared fixtures."""

import os

import pytest

from mmpipe import Channel, MemoryBoard


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep MMPIPE_* variables from the outer shell out of the tests."""
    for key in list(os.environ):
        if key.startswith("MMPIPE_"):
            monkeypatch.delenv(key)
    yield


@pytest.fixture
def board():
    return MemoryBoard()


@pytest.fixture
def initiator(board):
    return Channel(board, inbound_id="s2c1", outbound_id="c2s1")


@pytest.fixture
def responder(board):
    return Channel(board, inbound_id="c2s1", outbound_id="s2c1")


@pytest.fixture
def small_pair(board):
    """Channels whose inline chunk is exactly 300 bytes (400-char bodies)."""
    a = Channel(board, inbound_id="s2c1", outbound_id="c2s1", message_limit=400)
    b = Channel(board, inbound_id="c2s1", outbound_id="s2c1", message_limit=400)
    return a, b
