"""Supervisor Agent — opens each round, directs the Coder, and reviews its work.

The review text decides what happens next. classify_review turns it into a
tagged decision:

    Handoff(question)  the Supervisor is waiting on the human
    Complete()         the work is done
    Continue()         run another round

Matching is a plain case-insensitive phrase search. Handoff is checked before
completion: a review can sound finished and still be waiting on a
confirmation from the user.
"""

import re
from dataclasses import dataclass

from scl.state import Attachment

SYSTEM_PREAMBLE = "You are the Supervisor (Architect)."
REVIEW_PREAMBLE = "You are the Supervisor."

GENERIC_HANDOFF_PROMPT = "Supervisor needs your input. Please respond in simple words."

HANDOFF_RE = re.compile(
    r"user input|user response|ask the user|need clarification|please provide|can you",
    re.IGNORECASE,
)
COMPLETE_RE = re.compile(
    r"\b(?:complete|finished|nothing else|project is done)",
    re.IGNORECASE,
)
QUESTION_RE = re.compile(
    r"(?:question|ask|please provide|can you|clarify|input)[^\n.!?]*[\n.!?]",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class Handoff:
    question: str = ""


@dataclass(frozen=True)
class Complete:
    pass


@dataclass(frozen=True)
class Continue:
    pass


ReviewDecision = Handoff | Complete | Continue


def extract_question(review_text: str) -> str:
    """Return the first question-like clause in the review, or ''."""
    match = QUESTION_RE.search(review_text)
    return match.group(0).strip() if match else ""


def classify_review(review_text: str) -> ReviewDecision:
    if HANDOFF_RE.search(review_text):
        return Handoff(extract_question(review_text))
    if COMPLETE_RE.search(review_text):
        return Complete()
    return Continue()


def _attachment_section(attachments: list[Attachment]) -> str:
    """Inline textual attachments; list binary ones by name only."""
    parts = ["\n\nAttached files:"]
    for att in attachments:
        if isinstance(att.content, str) and att.content:
            parts.append(f"\n--- {att.name} ({att.mime_type}) ---\n{att.content}")
        else:
            parts.append(f"\n- {att.name} ({att.mime_type}, {att.size} bytes)")
    return "".join(parts)


def build_opening_prompt(
    user_request: str, project_root: str, attachments: list[Attachment] | None = None
) -> str:
    """Round 1: state the user's request and have the Supervisor direct the Coder."""
    prompt = (
        f"You are the Supervisor (Architect). The user wants: {user_request}\n"
        "Discuss requirements, then instruct the Coder agent. Reply as Supervisor. "
        f"The coder will work on real files in the project directory: {project_root}"
    )
    if attachments:
        prompt += _attachment_section(attachments)
    return prompt


def build_continuation_prompt(previous_review: str, project_root: str, round_number: int) -> str:
    """Rounds 2+: only the previous review is carried forward."""
    return (
        f"You are the Supervisor (Architect). This is round {round_number}. "
        f"Your review of the Coder's last work was:\n{previous_review}\n\n"
        "Give the Coder the next concrete steps, or state that the project is complete "
        "if nothing else is needed. "
        f"The coder works on real files in the project directory: {project_root}"
    )


def build_review_prompt(coder_message: str) -> str:
    return f"You are the Supervisor. Review the Coder's implementation: {coder_message}"
