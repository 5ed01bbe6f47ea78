"""Status / event sinks — where the loop reports transcript and status changes.

Sinks are fire-and-forget: the loop never reads a return value from them.
"""

import sys
from datetime import datetime, timezone
from typing import Protocol

from scl.state import TranscriptMessage


class Sink(Protocol):
    def on_message(self, message: TranscriptMessage) -> None: ...

    def on_status(self, status: dict[str, str]) -> None: ...

    def on_inter_role_message(self, sender: str, recipient: str, text: str) -> None: ...


class NullSink:
    """Discards everything."""

    def on_message(self, message: TranscriptMessage) -> None:
        pass

    def on_status(self, status: dict[str, str]) -> None:
        pass

    def on_inter_role_message(self, sender: str, recipient: str, text: str) -> None:
        pass


class ConsoleSink:
    """Print transcript entries and status transitions as [SCL] lines."""

    def __init__(self, stream=None, preview_chars: int = 400):
        self.stream = stream if stream is not None else sys.stdout
        self.preview_chars = preview_chars

    def _preview(self, text: str) -> str:
        text = text.strip()
        if len(text) > self.preview_chars:
            return text[: self.preview_chars] + " ..."
        return text

    def on_message(self, message: TranscriptMessage) -> None:
        print(f"[SCL] {message.role}: {self._preview(message.content)}", file=self.stream)

    def on_status(self, status: dict[str, str]) -> None:
        active = [role for role, state in status.items() if state == "active"]
        print(f"[SCL] Active: {', '.join(active) or 'none'}", file=self.stream)

    def on_inter_role_message(self, sender: str, recipient: str, text: str) -> None:
        pass


class AgentLog:
    """In-memory log of inter-role messages, in the order they were sent."""

    def __init__(self):
        self._entries: list[dict] = []

    def on_message(self, message: TranscriptMessage) -> None:
        pass

    def on_status(self, status: dict[str, str]) -> None:
        pass

    def on_inter_role_message(self, sender: str, recipient: str, text: str) -> None:
        self._entries.append({
            "from": sender,
            "to": recipient,
            "message": text,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    def entries(self) -> list[dict]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()


class CompositeSink:
    """Fan each event out to several sinks, in registration order."""

    def __init__(self, *sinks: Sink):
        self.sinks = list(sinks)

    def on_message(self, message: TranscriptMessage) -> None:
        for sink in self.sinks:
            sink.on_message(message)

    def on_status(self, status: dict[str, str]) -> None:
        for sink in self.sinks:
            sink.on_status(status)

    def on_inter_role_message(self, sender: str, recipient: str, text: str) -> None:
        for sink in self.sinks:
            sink.on_inter_role_message(sender, recipient, text)
