"""Transcript Formatter — renders a finished conversation as Markdown."""

from pathlib import Path

from scl.config import get_config
from scl.conversation import Conversation
from scl.state import RunResult, TranscriptMessage

_ROLE_TITLES = {
    "user": "User",
    "supervisor": "Supervisor",
    "coder": "Coder",
    "system": "System",
}

_OUTCOME_LABELS = {
    "complete": "Complete",
    "needs_user_input": "Waiting on user input",
    "error": "Aborted on error",
    "round_limit": "Round limit reached",
    "missing_project_root": "No project directory selected",
    "cancelled": "Cancelled",
}


def _render_message(message: TranscriptMessage) -> list[str]:
    lines = []
    title = _ROLE_TITLES.get(message.role, message.role)
    stamp = message.timestamp.strftime("%Y-%m-%d %H:%M:%S UTC")
    lines.append(f"### {title}")
    lines.append("")
    lines.append(f"*{stamp}*")
    lines.append("")

    if message.kind == "code":
        lines.append("````")
        lines.append(message.content)
        lines.append("````")
    elif message.kind == "system":
        lines.append(f"> {message.content}")
    else:
        lines.append(message.content)
    lines.append("")

    if message.attachments:
        lines.append("**Attachments:**")
        lines.append("")
        for att in message.attachments:
            lines.append(f"- `{att.name}` ({att.mime_type}, {att.size} bytes)")
        lines.append("")
    return lines


def render_transcript(messages: list[TranscriptMessage], result: RunResult | None = None,
                      project_root: str = "") -> str:
    """Convert a transcript into a Markdown document."""
    lines = ["# Supervisor-Coder Transcript", ""]

    if project_root:
        lines.append(f"- **Project root:** `{project_root}`")
    if result is not None:
        lines.append(f"- **Outcome:** {_OUTCOME_LABELS.get(result.outcome, result.outcome)}")
        lines.append(f"- **Rounds:** {result.rounds}")
        if result.error:
            lines.append(f"- **Error:** {result.error}")
        if result.question:
            lines.append(f"- **Open question:** {result.question}")
    if len(lines) > 2:
        lines.append("")

    for message in messages:
        lines.extend(_render_message(message))

    return "\n".join(lines)


def write_transcript(conversation: Conversation, result: RunResult | None = None) -> Path:
    """Write the conversation transcript as Markdown to the configured directory.

    Returns the Path to the written file.
    """
    config = get_config()
    output_dir = Path(config.get("transcript_dir", "./output"))
    output_dir.mkdir(parents=True, exist_ok=True)

    # Find a non-conflicting filename
    output_path = output_dir / "transcript.md"
    counter = 1
    while output_path.exists():
        counter += 1
        output_path = output_dir / f"transcript ({counter}).md"

    content = render_transcript(conversation.messages, result, conversation.project_root)
    output_path.write_text(content, encoding="utf-8")
    return output_path
