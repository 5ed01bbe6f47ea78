"""Entry point: validates input, runs the Supervisor-Coder loop, writes the transcript."""

import os
import sys
import threading

from scl.agents.client import LangChainCompletionClient
from scl.config import get_config
from scl.conversation import Conversation
from scl.graph import run_conversation
from scl.sinks import AgentLog, CompositeSink, ConsoleSink
from scl.state import RunResult
from scl.utils.formatter import write_transcript
from scl.utils.validator import validate_input


def _pop_option(args: list[str], name: str) -> str | None:
    """Remove `name VALUE` or `name=VALUE` from args and return VALUE."""
    for i, arg in enumerate(args):
        if arg == name:
            if i + 1 >= len(args):
                raise SystemExit(f"{name} requires a value.")
            value = args[i + 1]
            del args[i:i + 2]
            return value
        if arg.startswith(name + "="):
            del args[i]
            return arg.split("=", 1)[1]
    return None


def _run_interruptible(conversation: Conversation, request: str, **kwargs) -> RunResult:
    """Run the loop in a worker thread so Ctrl+C cancels at the next round boundary."""
    cancel_event = threading.Event()
    box = {}

    def _target():
        try:
            box["result"] = run_conversation(
                conversation, request, cancel_event=cancel_event, **kwargs
            )
        except Exception as exc:
            box["error"] = exc

    worker = threading.Thread(target=_target, daemon=True)
    worker.start()
    while worker.is_alive():
        try:
            worker.join(timeout=0.5)
        except KeyboardInterrupt:
            print("\n[SCL] Cancelling after the current call finishes...", file=sys.stderr)
            cancel_event.set()
    if "error" in box:
        raise box["error"]
    return box["result"]


def run(user_request: str, project_root: str, hitl: bool | None = None,
        max_rounds: int | None = None) -> RunResult:
    """Run the full loop on a user request against a project directory.

    Args:
        user_request: What the user wants built or changed.
        project_root: Directory the Coder's operations are applied to.
        hitl: Override for human handoff prompting. None uses config default.
        max_rounds: Override for the round limit. None uses config default.
    """
    config = get_config()
    hitl_enabled = hitl if hitl is not None else config.get("hitl_enabled", True)
    request = validate_input(user_request)

    root = os.path.abspath(project_root) if project_root else ""
    agent_log = AgentLog()
    conversation = Conversation(root, sink=CompositeSink(ConsoleSink(), agent_log))
    client = LangChainCompletionClient()

    result = _run_interruptible(conversation, request, client=client, max_rounds=max_rounds)

    # Human handoff: collect the answer in the terminal and keep going.
    while hitl_enabled and result.outcome == "needs_user_input":
        print("\n--- The Supervisor needs your input ---\n")
        if result.question:
            print(result.question)
        answer = input("Your response (empty to stop): ").strip()
        if not answer:
            break
        result = _run_interruptible(conversation, answer, client=client, max_rounds=max_rounds)

    output_path = write_transcript(conversation, result)
    print(f"[SCL] Outcome: {result.outcome}")
    print(f"[SCL] Rounds: {result.rounds}")
    print(f"[SCL] Inter-agent messages: {len(agent_log.entries())}")
    print(f"[SCL] Transcript written to: {output_path}")
    return result


def main() -> None:
    """CLI entry point — accepts the request as arguments or from stdin."""
    hitl = None
    args = sys.argv[1:]

    if "--no-hitl" in args:
        hitl = False
        args.remove("--no-hitl")

    project_root = _pop_option(args, "--root") or os.getcwd()
    max_rounds = _pop_option(args, "--max-rounds")

    if args:
        user_request = " ".join(args)
    else:
        print("Enter your request (Ctrl+D / Ctrl+Z to submit):")
        user_request = sys.stdin.read()

    result = run(
        user_request,
        project_root,
        hitl=hitl,
        max_rounds=int(max_rounds) if max_rounds else None,
    )
    if result.outcome == "error":
        sys.exit(1)


if __name__ == "__main__":
    main()
