"""
Clear, actionable error message formatting.

All error messages follow the pattern:
  ERROR: [What failed]
    Reason: [Why it failed]
    Action: [What user should do]
    Location: [Where the problem is]
"""

from typing import Optional


def format_error(
    what_failed: str,
    reason: str,
    action: str,
    location: Optional[str] = None,
    details: Optional[str] = None
) -> str:
    """
    Format a clear, actionable error message.

    Args:
        what_failed: What operation failed (e.g., "Could not connect to store")
        reason: Why it failed
        action: What user should do
        location: Where the problem occurred (config file, host, port)
        details: Optional additional details

    Returns:
        Formatted error message
    """
    lines = [f"ERROR: {what_failed}"]
    lines.append(f"  Reason: {reason}")
    lines.append(f"  Action: {action}")

    if location:
        lines.append(f"  Location: {location}")

    if details:
        lines.append(f"  Details: {details}")

    return "\n".join(lines)


def format_store_config_error(connection_string: str, reason: str) -> str:
    """Format the error shown when store access cannot be constructed."""
    # Credentials never reach the console
    shown = connection_string
    if '@' in shown and '://' in shown:
        scheme, rest = shown.split('://', 1)
        shown = f"{scheme}://***@{rest.split('@', 1)[1]}"

    return format_error(
        what_failed="Could not configure store access",
        reason=reason,
        action="Fix connection_string in config.json or pass --connection-string",
        location=shown or "(empty connection string)"
    )


def format_disruption_error(step_label: str, reason: str, port: Optional[int] = None) -> str:
    """Format a failed disruption step."""
    return format_error(
        what_failed=f"Disruption step failed: {step_label}",
        reason=reason,
        action="Check that the node is running and the controller has permission to manage it",
        location=f"port {port}" if port is not None else None
    )
