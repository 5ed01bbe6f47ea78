"""Shared fixtures for the SCL test suite."""

import pytest
from unittest.mock import patch

from scl.applier import ApplyResult
from scl.errors import CompletionError


class FakeClient:
    """Scripted CompletionClient.

    Each reply is either a string or an Exception instance; exceptions are
    raised as CompletionError for the calling role. Once the script runs out
    the last entry repeats.
    """

    def __init__(self, replies, events=None):
        self.replies = list(replies)
        self.calls = []
        self.events = events

    def complete(self, role, system_preamble, prompt, max_tokens):
        self.calls.append({
            "role": role,
            "system": system_preamble,
            "prompt": prompt,
            "max_tokens": max_tokens,
        })
        if self.events is not None:
            self.events.append(("complete", role))
        index = min(len(self.calls) - 1, len(self.replies) - 1)
        reply = self.replies[index]
        if isinstance(reply, Exception):
            raise CompletionError(role, str(reply))
        return reply


class RecordingApplier:
    """FileSystemApplier that records calls instead of touching disk."""

    def __init__(self, fail_paths=(), events=None):
        self.calls = []
        self.fail_paths = set(fail_paths)
        self.events = events

    def _record(self, action, path, content=None):
        self.calls.append((action, path, content))
        if self.events is not None:
            self.events.append(("apply", action, path))
        if path in self.fail_paths:
            return ApplyResult(False, "disk full")
        return ApplyResult(True)

    def create(self, path, content):
        return self._record("create", path, content)

    def write_all(self, path, content):
        return self._record("write_all", path, content)

    def delete(self, path):
        return self._record("delete", path)


class RecordingSink:
    """Sink that keeps every event in one ordered list."""

    def __init__(self):
        self.events = []

    def on_message(self, message):
        self.events.append(("message", message.role, message.content))

    def on_status(self, status):
        self.events.append(("status", dict(status)))

    def on_inter_role_message(self, sender, recipient, text):
        self.events.append(("relay", sender, recipient, text))

    @property
    def statuses(self):
        return [e[1] for e in self.events if e[0] == "status"]


@pytest.fixture
def mock_config():
    """Patch the config singleton with test-friendly values."""
    test_config = {
        "supervisor_provider": "anthropic",
        "supervisor_model": "claude-sonnet-4-6",
        "coder_provider": "google",
        "coder_model": "gemini-2.0-flash",
        "temperature": 0,
        "supervisor_max_tokens": 1024,
        "coder_max_tokens": 2048,
        "max_rounds": 10,
        "llm_max_retries": 2,
        "transcript_dir": "./output",
        "hitl_enabled": False,
    }
    with patch("scl.config._config", test_config):
        yield test_config


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def applier():
    return RecordingApplier()


@pytest.fixture
def health_reply():
    return (
        "Here is the endpoint.\n"
        "```json\n"
        '{"operations":[{"action":"create","path":"health.go","content":"package main"}]}\n'
        "```\n"
        "Let me know if anything else is needed."
    )
