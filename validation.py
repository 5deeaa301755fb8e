"""
Input validation for identifiers and search text.

Handles:
- Resource/container IDs: reject anything outside the Graph ID alphabet
- Human-readable names: trim and strip control characters
- Site search text: sanitize before it reaches the ?search= parameter
"""

import re

# =============================================================================
# PATTERNS
# =============================================================================

# Graph drive item IDs: "01ABCDEF...", personal drives use "ABC123!456".
# Drive IDs: "b!xyz-_..." (base64url-ish with a "b!" prefix).
_GRAPH_ID_RE = re.compile(r'^[A-Za-z0-9!_\-.]+$')


# =============================================================================
# ID VALIDATION
# =============================================================================

def validate_resource_id(resource_id: str, param_name: str = "resource_id") -> str:
    """
    Validate and normalize an opaque resource or container ID.

    IDs are interpolated into URL paths (/drives/{id}/items/{id}), so anything
    outside the ID alphabet (slashes, query characters, whitespace) is either
    a malformed ID or a path-injection attempt.

    Args:
        resource_id: The ID to validate
        param_name: Name used in the error message

    Returns:
        The stripped ID

    Raises:
        ValueError: If the ID is empty or contains disallowed characters
    """
    if not resource_id or not resource_id.strip():
        raise ValueError(f"{param_name} is required")

    resource_id = resource_id.strip()
    if not _GRAPH_ID_RE.match(resource_id):
        raise ValueError(
            f"Invalid {param_name}: must contain only alphanumeric characters, "
            f"'!', '.', hyphens, and underscores"
        )
    return resource_id


def _strip_control_chars(value: str) -> str:
    # ASCII 0-31 and DEL
    return ''.join(char for char in value if ord(char) >= 32 and char != '\x7f')


def normalize_name(name: str, param_name: str = "name") -> str:
    """
    Normalize a human-readable site/container name.

    Raises:
        ValueError: If nothing is left after stripping
    """
    cleaned = _strip_control_chars(name or "").strip()
    if not cleaned:
        raise ValueError(f"{param_name} is required")
    return cleaned


def sanitize_search_query(query: str) -> str:
    """
    Sanitize user input for the Graph site search parameter.

    Site search is KQL-ish: double quotes open phrases and unbalanced ones
    make the backend reject the whole request. We drop them along with
    control characters.

    Example:
        >>> sanitize_search_query('Contoso "Team')
        'Contoso Team'
    """
    if not query:
        return query
    return _strip_control_chars(query).replace('"', '').strip()
