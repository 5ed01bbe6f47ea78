"""Operation Extractor — recover the Coder's file operations from free text.

The Coder is asked to embed a payload shaped like:

    {"operations": [{"action": "create|modify|delete", "path": "...", "content": "..."}]}

optionally wrapped in ```json fences and surrounded by prose. Extraction never
raises: the result is one of Operations, NoOperations or ParseError, and the
loop treats the last two as "nothing to apply".
"""

import json
from dataclasses import dataclass

from scl.state import VALID_ACTIONS, FileOperation
from scl.utils.parsing import balanced_object_spans, remove_fence_lines


@dataclass(frozen=True)
class Operations:
    operations: tuple[FileOperation, ...]
    skipped: tuple[tuple[int, str], ...] = ()  # (index, reason) per dropped entry


@dataclass(frozen=True)
class NoOperations:
    reason: str = "No operations payload found."


@dataclass(frozen=True)
class ParseError:
    reason: str


ExtractResult = Operations | NoOperations | ParseError


def _decode_payload(text: str) -> dict | ParseError | None:
    """Pick the payload object among the brace spans in text.

    The first object carrying an "operations" key wins, then the first
    object that decodes at all. None means there was no brace span. If
    spans exist but none decodes to an object, the first span's decode
    error is returned.
    """
    first_object = None
    first_error = None
    for span in balanced_object_spans(text):
        try:
            data = json.loads(span)
        except json.JSONDecodeError as exc:
            if first_error is None:
                first_error = ParseError(f"Invalid JSON payload: {exc}")
            continue
        if not isinstance(data, dict):
            continue
        if "operations" in data:
            return data
        if first_object is None:
            first_object = data
    return first_object if first_object is not None else first_error


def _validate_entry(entry) -> FileOperation | str:
    """Return a FileOperation, or the reason the entry was rejected."""
    if not isinstance(entry, dict):
        return "entry is not an object"
    action = entry.get("action")
    if action not in VALID_ACTIONS:
        return f"invalid or missing action {action!r}"
    path = entry.get("path")
    if not isinstance(path, str) or not path.strip():
        return "missing or empty path"
    content = entry.get("content")
    if content is None:
        content = ""
    elif not isinstance(content, str):
        content = json.dumps(content, indent=2)
    return FileOperation(action=action, path=path, content=content)


def extract_operations(raw_text: str) -> ExtractResult:
    """Parse an ordered operation batch out of a Coder reply."""
    if not raw_text:
        return NoOperations()

    # Fence markers inside string values are file content; decode the raw text first.
    decoded = _decode_payload(raw_text)
    if not (isinstance(decoded, dict) and "operations" in decoded):
        unfenced = _decode_payload(remove_fence_lines(raw_text))
        if isinstance(unfenced, dict) and "operations" in unfenced:
            decoded = unfenced
    if decoded is None:
        return NoOperations()
    if isinstance(decoded, ParseError):
        return decoded

    entries = decoded.get("operations")
    if not isinstance(entries, list):
        return NoOperations("Payload has no 'operations' list.")

    operations = []
    skipped = []
    for i, entry in enumerate(entries):
        result = _validate_entry(entry)
        if isinstance(result, str):
            skipped.append((i, result))
        else:
            operations.append(result)

    return Operations(operations=tuple(operations), skipped=tuple(skipped))
