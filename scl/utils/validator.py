"""Input validation — checks that the user request is a non-empty string before the loop runs."""


def validate_input(user_request: str) -> str:
    """Validate that the user request is a non-empty string.

    Returns the stripped input on success.
    Raises ValueError if input is empty or whitespace-only.
    """
    if not isinstance(user_request, str) or not user_request.strip():
        raise ValueError("User request must be a non-empty string.")
    return user_request.strip()
