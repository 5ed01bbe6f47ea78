"""SCL State — transcript records, role status and the per-run graph state."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, TypedDict

Role = Literal["user", "supervisor", "coder", "system"]
MessageKind = Literal["text", "code", "system"]
Activity = Literal["idle", "active"]
Action = Literal["create", "modify", "delete"]
Outcome = Literal[
    "complete",
    "needs_user_input",
    "error",
    "round_limit",
    "missing_project_root",
    "cancelled",
]

STATUS_ROLES = ("supervisor", "coder", "user")
VALID_ACTIONS = ("create", "modify", "delete")


def idle_status() -> dict[str, Activity]:
    """Return a fresh all-idle role status mapping."""
    return {role: "idle" for role in STATUS_ROLES}


@dataclass(frozen=True)
class Attachment:
    name: str
    size: int
    mime_type: str
    content: str | bytes | None = None
    url: str | None = None

    def to_dict(self) -> dict:
        # Binary payloads are referenced by name only.
        content = self.content if isinstance(self.content, str) else None
        return {
            "name": self.name,
            "size": self.size,
            "mime_type": self.mime_type,
            "content": content,
            "url": self.url,
        }


@dataclass(frozen=True)
class TranscriptMessage:
    """One utterance. Never mutated after creation."""

    role: Role
    content: str
    kind: MessageKind = "text"
    attachments: tuple[Attachment, ...] = ()
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "role": self.role,
            "content": self.content,
            "kind": self.kind,
            "timestamp": self.timestamp.isoformat(),
            "attachments": [a.to_dict() for a in self.attachments],
        }


@dataclass(frozen=True)
class FileOperation:
    action: Action
    path: str
    content: str = ""


@dataclass(frozen=True)
class RunResult:
    """Terminal outcome of one run_conversation call."""

    outcome: Outcome
    rounds: int = 0
    error: str = ""
    question: str = ""


class LoopState(TypedDict):
    user_request: str  # Original user input. Immutable after init.
    attachments: list[Attachment]
    round: int  # Current round, numbered from 1.
    max_rounds: int
    context: str  # Review text carried into the next Supervisor turn.
    supervisor_message: str
    coder_message: str
    review_message: str
    decision: Any  # Handoff | Complete | Continue, set by the review node.
    outcome: Outcome | None
    error: str
