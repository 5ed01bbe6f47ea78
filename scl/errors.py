"""Exception types raised inside the loop's collaborators."""


class SCLError(Exception):
    """Base class for loop errors."""


class CompletionError(SCLError):
    """A completion call failed for one role. Fatal to the conversation."""

    def __init__(self, role: str, message: str):
        super().__init__(message)
        self.role = role
        self.message = message


class PathEscapesRoot(SCLError):
    """An operation path resolved outside the project root."""

    def __init__(self, raw_path: str, project_root: str):
        super().__init__(f"Path '{raw_path}' escapes project root '{project_root}'.")
        self.raw_path = raw_path
        self.project_root = project_root
