import re

from app.core.gateway.exceptions import InvalidIdentifier

# Identifiers can't be bound as parameters, so this allow-list is the only
# thing standing between a path segment and the SQL text.
IDENTIFIER_PATTERN = re.compile(r"[A-Za-z0-9_]+")


def validate_identifier(name: str, kind: str = "table") -> str:
    """
    Check a table, view or column name before it is concatenated into SQL.

    Args:
        name: Identifier taken from the request
        kind: What the identifier names, used in the error message

    Returns:
        The same name, so calls can be inlined

    Example:
        validate_identifier("ore_deposits")        -> "ore_deposits"
        validate_identifier("x; DROP TABLE users") -> InvalidIdentifier
    """
    if not isinstance(name, str) or not IDENTIFIER_PATTERN.fullmatch(name):
        raise InvalidIdentifier(f"Invalid {kind} name: {name}")
    return name
