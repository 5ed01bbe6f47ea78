"""Coder Agent — turns the Supervisor's direction into file operations."""

SYSTEM_PREAMBLE = "You are the Coder (Engineer)."

OPERATIONS_FORMAT = """\
{
  "operations": [
    {"action": "create|modify|delete", "path": "relative/or/absolute/path", "content": "..."}
  ]
}"""


def build_coder_prompt(supervisor_message: str, project_root: str) -> str:
    return (
        f"You are the Coder (Engineer). Supervisor says: {supervisor_message}\n"
        "You must generate and apply real file operations (create/modify/delete) "
        f"in the project directory: {project_root}. Reply as Coder.\n"
        f"Format file operations as JSON: {OPERATIONS_FORMAT}"
    )
