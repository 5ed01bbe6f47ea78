"""File-System Applier — executes extracted operations against the project root.

Applier methods report failure through ApplyResult instead of raising, so a
bad operation never unwinds the loop. apply_operations drives one batch in
the exact order the Coder emitted it.
"""

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol

from scl.errors import PathEscapesRoot
from scl.state import FileOperation
from scl.utils.paths import resolve_path


@dataclass(frozen=True)
class ApplyResult:
    ok: bool
    error: str = ""


@dataclass(frozen=True)
class AppliedOperation:
    operation: FileOperation
    target: str  # Resolved absolute path, empty when resolution failed.
    result: ApplyResult


class FileSystemApplier(Protocol):
    def create(self, path: str, content: str) -> ApplyResult: ...

    def write_all(self, path: str, content: str) -> ApplyResult: ...

    def delete(self, path: str) -> ApplyResult: ...


class LocalFileSystemApplier:
    """Applier backed by the local disk.

    create overwrites an existing file; both create and write_all make any
    missing parent directories.
    """

    def _write(self, path: str, content: str) -> ApplyResult:
        target = Path(path)
        try:
            if target.is_dir():
                return ApplyResult(False, f"'{path}' is a directory.")
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        except OSError as exc:
            return ApplyResult(False, str(exc))
        return ApplyResult(True)

    def create(self, path: str, content: str) -> ApplyResult:
        return self._write(path, content)

    def write_all(self, path: str, content: str) -> ApplyResult:
        return self._write(path, content)

    def delete(self, path: str) -> ApplyResult:
        target = Path(path)
        try:
            if target.is_dir():
                shutil.rmtree(target)
            elif target.exists():
                target.unlink()
            else:
                return ApplyResult(False, f"'{path}' does not exist.")
        except OSError as exc:
            return ApplyResult(False, str(exc))
        return ApplyResult(True)


def _dispatch(applier: FileSystemApplier, op: FileOperation, target: str) -> ApplyResult:
    if op.action == "create":
        return applier.create(target, op.content)
    if op.action == "modify":
        return applier.write_all(target, op.content)
    return applier.delete(target)


def apply_operations(
    operations,
    project_root: str,
    applier: FileSystemApplier,
    on_error: Callable[[str], None] | None = None,
) -> list[AppliedOperation]:
    """Apply operations strictly in order; a failure never stops the batch.

    on_error receives a human-readable line for each rejected path and each
    failed apply.
    """
    applied = []
    for op in operations:
        try:
            target = resolve_path(op.path, project_root)
        except PathEscapesRoot as exc:
            result = ApplyResult(False, str(exc))
            applied.append(AppliedOperation(op, "", result))
            if on_error:
                on_error(f"Skipped {op.action} '{op.path}': {exc}")
            continue

        try:
            result = _dispatch(applier, op, target)
        except Exception as exc:  # custom appliers may still raise
            result = ApplyResult(False, repr(exc))
        applied.append(AppliedOperation(op, target, result))
        if not result.ok and on_error:
            on_error(f"Failed to {op.action} '{target}': {result.error}")
    return applied
