"""
Input validation functions for tree_mirror.

Provides validation for configuration values that are easier to check up
front than to fail on halfway through a run.
"""

import re
import string

_LOG_TEMPLATE_FIELDS = frozenset({"hostname", "timestamp"})
_EJECT_COMMAND_FIELDS = frozenset({"mount_point"})

# Deliberately loose: one "@", no whitespace, a dot in the domain.
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


# ---------------------------------------------------------------------------
# Error message formatting helpers
# ---------------------------------------------------------------------------


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Human-readable field name (e.g., "Log path template")
        reason: Description of validation failure (e.g., "cannot be empty")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def _template_fields(template: str) -> list[str]:
    """Return the ``str.format`` field names in *template*.

    Raises:
        ValueError: If the template is malformed.
    """
    return [
        name
        for _, name, _, _ in string.Formatter().parse(template)
        if name is not None
    ]


def _unknown_placeholders(names: list[str]) -> str:
    return "has unknown placeholder(s): " + ", ".join(
        f"{{{name}}}" for name in names
    )


def validate_log_path_template(template: str) -> tuple[bool, str]:
    """
    Validate a per-run log path template.

    Args:
        template: Path template such as ``logs/{hostname}-{timestamp}.log``

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.

    Validation rules:
        - Cannot be empty or whitespace-only
        - Must be a well-formed ``str.format`` template
        - May only use the ``{hostname}`` and ``{timestamp}`` fields
    """
    if not template or not template.strip():
        return (
            False,
            format_validation_error("Log path template", "cannot be empty"),
        )

    try:
        fields = _template_fields(template)
    except ValueError as exc:
        return (
            False,
            format_validation_error(
                "Log path template", f"is malformed: {exc}"
            ),
        )

    unknown = sorted(set(fields) - _LOG_TEMPLATE_FIELDS)
    if unknown:
        return (
            False,
            format_validation_error(
                "Log path template", _unknown_placeholders(unknown)
            ),
        )

    return (True, "")


def validate_email_address(address: str) -> tuple[bool, str]:
    """
    Validate an e-mail address.

    Returns:
        Tuple of (is_valid, error_message).
    """
    if not address or not address.strip():
        return (
            False,
            format_validation_error("E-mail address", "cannot be empty"),
        )

    if not _EMAIL_PATTERN.match(address.strip()):
        return (
            False,
            format_validation_error(
                "E-mail address", f"is not valid: {address!r}"
            ),
        )

    return (True, "")


def validate_eject_command(command: list[str]) -> tuple[bool, str]:
    """
    Validate an eject argv template.

    Every argument must be a well-formed ``str.format`` template using
    only the ``{mount_point}`` field.

    Returns:
        Tuple of (is_valid, error_message).
    """
    if not command:
        return (
            False,
            format_validation_error("Eject command", "cannot be empty"),
        )

    fields: set[str] = set()
    for arg in command:
        try:
            fields.update(_template_fields(arg))
        except ValueError as exc:
            return (
                False,
                format_validation_error(
                    "Eject command", f"argument {arg!r} is malformed: {exc}"
                ),
            )

    unknown = sorted(fields - _EJECT_COMMAND_FIELDS)
    if unknown:
        return (
            False,
            format_validation_error(
                "Eject command", _unknown_placeholders(unknown)
            ),
        )

    return (True, "")
