"""Conversation context — the single owner of a transcript and its role status.

The loop mutates a conversation only through the methods below, and every
mutation is forwarded to the sink in the order it happens.
"""

from scl.sinks import NullSink, Sink
from scl.state import Attachment, MessageKind, Role, TranscriptMessage, idle_status


class Conversation:
    def __init__(self, project_root: str = "", sink: Sink | None = None):
        self.project_root = project_root
        self.sink = sink if sink is not None else NullSink()
        self._messages: list[TranscriptMessage] = []
        self._status = idle_status()

    @property
    def messages(self) -> list[TranscriptMessage]:
        return list(self._messages)

    @property
    def status(self) -> dict[str, str]:
        return dict(self._status)

    def add_message(
        self,
        role: Role,
        content: str,
        kind: MessageKind = "text",
        attachments: list[Attachment] | None = None,
    ) -> TranscriptMessage:
        message = TranscriptMessage(
            role=role,
            content=content,
            kind=kind,
            attachments=tuple(attachments or ()),
        )
        self._messages.append(message)
        self.sink.on_message(message)
        return message

    def system(self, content: str) -> TranscriptMessage:
        return self.add_message("system", content, "system")

    def set_status(self, **changes: str) -> None:
        """Apply role -> activity changes and emit one snapshot."""
        for role, activity in changes.items():
            if role not in self._status:
                raise ValueError(f"Unknown role '{role}'.")
            if activity not in ("idle", "active"):
                raise ValueError(f"Invalid activity '{activity}' for role '{role}'.")
            self._status[role] = activity
        self.sink.on_status(dict(self._status))

    def set_all_idle(self) -> None:
        self.set_status(supervisor="idle", coder="idle", user="idle")

    def relay(self, sender: str, recipient: str, text: str) -> None:
        self.sink.on_inter_role_message(sender, recipient, text)

    def reset(self) -> None:
        """Start a new chat: drop the transcript, idle every role, keep the root."""
        self._messages = []
        self._status = idle_status()
        self.sink.on_status(dict(self._status))
