"""Path Resolver — confine untrusted operation paths to the project root."""

import os

from scl.errors import PathEscapesRoot


def _within(path: str, root: str) -> bool:
    return path == root or path.startswith(root.rstrip(os.sep) + os.sep)


def resolve_path(raw_path: str, project_root: str) -> str:
    """Map raw_path to an absolute path under project_root.

    A path already starting with the root is used as-is; anything else is
    joined onto the root after stripping leading separators. The normalized
    result, and its symlink-resolved form, must stay inside the root,
    otherwise PathEscapesRoot is raised.
    """
    if not project_root:
        raise ValueError("project_root must be a non-empty path.")

    if raw_path.startswith(project_root):
        candidate = raw_path
    else:
        relative = raw_path.lstrip("/\\")
        # A relative path that climbs above its own start escapes any root, "/" included.
        if os.path.normpath(relative).split(os.sep)[0] == os.pardir:
            raise PathEscapesRoot(raw_path, project_root)
        candidate = project_root.rstrip("/\\") + "/" + relative

    root = os.path.normpath(os.path.abspath(project_root))
    resolved = os.path.normpath(os.path.abspath(candidate))
    if not _within(resolved, root):
        raise PathEscapesRoot(raw_path, project_root)
    # Containment must also hold once symlinks already on disk are followed.
    if not _within(os.path.realpath(resolved), os.path.realpath(root)):
        raise PathEscapesRoot(raw_path, project_root)
    return resolved
