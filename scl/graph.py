"""LangGraph StateGraph definition for the Supervisor-Coder loop.

One round is supervisor -> coder -> apply -> review. After the review the
loop either hands off to the user, finishes, runs another round, or stops
at the round limit. Every node talks to the outside world only through the
Conversation it was built with.
"""

import threading

from langgraph.graph import END, StateGraph

from scl.agents import coder as coder_agent
from scl.agents import supervisor as supervisor_agent
from scl.agents.client import CompletionClient
from scl.agents.supervisor import Complete, Handoff, classify_review
from scl.applier import FileSystemApplier, LocalFileSystemApplier, apply_operations
from scl.config import get_config
from scl.conversation import Conversation
from scl.errors import CompletionError
from scl.state import Attachment, LoopState, RunResult
from scl.utils.extractor import NoOperations, ParseError, extract_operations

MISSING_ROOT_MESSAGE = "Please select a project directory before starting."

# Graph steps per round: start, supervisor, coder, apply, review, increment.
_STEPS_PER_ROUND = 6


# --- Pure routing functions ---


def route_round_start(state: LoopState) -> str:
    """Conditional edge after the round-boundary check."""
    return "end" if state["outcome"] else "supervisor"


def route_after_supervisor(state: LoopState) -> str:
    return "end" if state["outcome"] else "coder"


def route_after_coder(state: LoopState) -> str:
    return "end" if state["outcome"] else "apply"


def route_after_review(state: LoopState) -> str:
    """Conditional edge: decide next step after the Supervisor review.

    Priority order:
    1. a failed review call -> end
    2. handoff to the user (checked before completion)
    3. complete
    4. round limit reached -> timeout
    5. otherwise -> next round
    """
    if state["outcome"]:
        return "end"

    decision = state["decision"]
    if isinstance(decision, Handoff):
        return "handoff"
    if isinstance(decision, Complete):
        return "complete"
    if state["round"] >= state["max_rounds"]:
        return "timeout"
    return "increment"


# --- Nodes ---


class LoopNodes:
    """Node functions bound to one conversation and its collaborators."""

    def __init__(
        self,
        conversation: Conversation,
        client: CompletionClient,
        applier: FileSystemApplier,
        cancel_event: threading.Event | None = None,
        classifier=classify_review,
    ):
        self.conversation = conversation
        self.client = client
        self.applier = applier
        self.cancel_event = cancel_event
        self.classifier = classifier
        config = get_config()
        self.supervisor_max_tokens = config.get("supervisor_max_tokens", 1024)
        self.coder_max_tokens = config.get("coder_max_tokens", 2048)

    def _fail(self, label: str, exc: CompletionError) -> dict:
        self.conversation.system(f"{label} request error: {exc.message}")
        self.conversation.set_all_idle()
        return {"outcome": "error", "error": f"{label}: {exc.message}"}

    def round_start(self, state: LoopState) -> dict:
        if self.cancel_event is not None and self.cancel_event.is_set():
            self.conversation.system(
                f"Conversation cancelled before round {state['round']}."
            )
            self.conversation.set_all_idle()
            return {"outcome": "cancelled"}
        return {}

    def supervisor(self, state: LoopState) -> dict:
        conv = self.conversation
        if conv.status["supervisor"] != "active":
            conv.set_status(supervisor="active")

        if state["round"] == 1:
            prompt = supervisor_agent.build_opening_prompt(
                state["user_request"], conv.project_root, state["attachments"]
            )
        else:
            prompt = supervisor_agent.build_continuation_prompt(
                state["context"], conv.project_root, state["round"]
            )

        try:
            text = self.client.complete(
                "supervisor", supervisor_agent.SYSTEM_PREAMBLE, prompt, self.supervisor_max_tokens
            )
        except CompletionError as exc:
            return self._fail("Supervisor", exc)

        text = text or "Supervisor response."
        conv.add_message("supervisor", text)
        conv.relay("supervisor", "coder", text)
        return {"supervisor_message": text}

    def coder(self, state: LoopState) -> dict:
        conv = self.conversation
        conv.set_status(supervisor="idle", coder="active")

        prompt = coder_agent.build_coder_prompt(state["supervisor_message"], conv.project_root)
        try:
            text = self.client.complete(
                "coder", coder_agent.SYSTEM_PREAMBLE, prompt, self.coder_max_tokens
            )
        except CompletionError as exc:
            return self._fail("Coder", exc)

        text = text or "Coder response."
        conv.add_message("coder", text, "code")
        conv.relay("coder", "supervisor", text)
        return {"coder_message": text}

    def apply(self, state: LoopState) -> dict:
        conv = self.conversation
        extracted = extract_operations(state["coder_message"])

        if isinstance(extracted, ParseError):
            conv.system(f"Failed to parse file operations: {extracted.reason}")
            return {}
        if isinstance(extracted, NoOperations):
            conv.system(f"No file operations applied. {extracted.reason}")
            return {}

        for index, reason in extracted.skipped:
            conv.system(f"Skipped operation #{index + 1}: {reason}.")

        applied = apply_operations(
            extracted.operations, conv.project_root, self.applier, on_error=conv.system
        )
        if applied:
            succeeded = sum(1 for a in applied if a.result.ok)
            conv.system(f"Applied {succeeded} of {len(applied)} file operation(s).")
        return {}

    def review(self, state: LoopState) -> dict:
        conv = self.conversation
        conv.set_status(coder="idle", supervisor="active")

        prompt = supervisor_agent.build_review_prompt(state["coder_message"])
        try:
            text = self.client.complete(
                "supervisor", supervisor_agent.REVIEW_PREAMBLE, prompt, self.supervisor_max_tokens
            )
        except CompletionError as exc:
            return self._fail("Supervisor review", exc)

        text = text or "Supervisor review."
        conv.add_message("supervisor", text)
        conv.relay("supervisor", "coder", text)
        return {"review_message": text, "decision": self.classifier(text)}

    def handoff(self, state: LoopState) -> dict:
        conv = self.conversation
        conv.set_status(supervisor="idle", user="active", coder="idle")
        question = state["decision"].question
        if question:
            conv.system(f"Question for user: {question}")
        else:
            conv.system(supervisor_agent.GENERIC_HANDOFF_PROMPT)
        return {"outcome": "needs_user_input"}

    def complete(self, state: LoopState) -> dict:
        self.conversation.set_all_idle()
        return {"outcome": "complete"}

    def increment(self, state: LoopState) -> dict:
        """Open the next round with the review as its only context."""
        self.conversation.set_status(supervisor="active", coder="idle", user="idle")
        return {"round": state["round"] + 1, "context": state["review_message"]}

    def timeout(self, state: LoopState) -> dict:
        self.conversation.set_all_idle()
        self.conversation.system(
            f"Stopped after {state['round']} round(s) without a completion signal."
        )
        return {"outcome": "round_limit"}


# --- Build the graph ---


def build_graph(nodes: LoopNodes):
    workflow = StateGraph(LoopState)

    workflow.add_node("start", nodes.round_start)
    workflow.add_node("supervisor", nodes.supervisor)
    workflow.add_node("coder", nodes.coder)
    workflow.add_node("apply", nodes.apply)
    workflow.add_node("review", nodes.review)
    workflow.add_node("handoff", nodes.handoff)
    workflow.add_node("complete", nodes.complete)
    workflow.add_node("increment", nodes.increment)
    workflow.add_node("timeout", nodes.timeout)

    workflow.set_entry_point("start")

    workflow.add_conditional_edges(
        "start", route_round_start, {"end": END, "supervisor": "supervisor"}
    )
    workflow.add_conditional_edges(
        "supervisor", route_after_supervisor, {"end": END, "coder": "coder"}
    )
    workflow.add_conditional_edges(
        "coder", route_after_coder, {"end": END, "apply": "apply"}
    )
    workflow.add_edge("apply", "review")
    workflow.add_conditional_edges(
        "review",
        route_after_review,
        {
            "end": END,
            "handoff": "handoff",
            "complete": "complete",
            "timeout": "timeout",
            "increment": "increment",
        },
    )

    workflow.add_edge("handoff", END)
    workflow.add_edge("complete", END)
    workflow.add_edge("timeout", END)
    workflow.add_edge("increment", "start")

    return workflow.compile()


def initial_state(
    user_request: str, attachments: list[Attachment] | None, max_rounds: int
) -> LoopState:
    return {
        "user_request": user_request,
        "attachments": list(attachments or []),
        "round": 1,
        "max_rounds": max_rounds,
        "context": "",
        "supervisor_message": "",
        "coder_message": "",
        "review_message": "",
        "decision": None,
        "outcome": None,
        "error": "",
    }


def run_conversation(
    conversation: Conversation,
    user_request: str,
    attachments: list[Attachment] | None = None,
    *,
    client: CompletionClient,
    applier: FileSystemApplier | None = None,
    cancel_event: threading.Event | None = None,
    max_rounds: int | None = None,
    classifier=classify_review,
) -> RunResult:
    """Run the Supervisor-Coder loop for one user request.

    Returns when the loop reaches a terminal outcome. The conversation's role
    status is all idle on return, or user-active after a handoff.
    """
    conversation.set_status(user="idle")
    conversation.add_message("user", user_request, "text", attachments)

    if not conversation.project_root:
        conversation.system(MISSING_ROOT_MESSAGE)
        return RunResult(outcome="missing_project_root")

    if max_rounds is None:
        max_rounds = get_config().get("max_rounds", 10)
    if max_rounds < 1:
        raise ValueError("max_rounds must be at least 1.")

    nodes = LoopNodes(
        conversation,
        client,
        applier if applier is not None else LocalFileSystemApplier(),
        cancel_event=cancel_event,
        classifier=classifier,
    )
    graph = build_graph(nodes)
    try:
        final = graph.invoke(
            initial_state(user_request, attachments, max_rounds),
            config={"recursion_limit": max_rounds * _STEPS_PER_ROUND + 10},
        )
    except Exception:
        # No role may stay active once the loop has unwound.
        conversation.set_all_idle()
        raise

    outcome = final["outcome"]
    rounds = final["round"] - 1 if outcome == "cancelled" else final["round"]
    decision = final["decision"]
    question = decision.question if isinstance(decision, Handoff) else ""
    return RunResult(outcome=outcome, rounds=rounds, error=final["error"], question=question)
