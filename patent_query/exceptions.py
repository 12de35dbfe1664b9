"""Exception hierarchy for patent-query."""

from pathlib import Path


class PatentQueryError(Exception):
    """Base exception for all patent-query errors.

    All exceptions in this package inherit from this class,
    allowing callers to catch all patent-query errors with
    a single except clause.
    """

    pass


# Configuration Errors
class ConfigError(PatentQueryError):
    """Configuration-related errors."""

    pass


class ConfigParseError(ConfigError):
    """Configuration file has invalid syntax."""

    def __init__(self, path: Path, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Invalid config at {path}: {detail}")


class ConfigValidationError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: object, reason: str) -> None:
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid config value for '{key}': {reason}")


# Expression Errors
class QueryParseError(PatentQueryError):
    """A line of the expression language violates the grammar.

    Carries the text and kind of the token the parser stopped at.
    Batch callers may set ``line`` to the 1-based line number.
    """

    def __init__(self, message: str, token_text: str, token_kind: str) -> None:
        self.message = message
        self.token_text = token_text
        self.token_kind = token_kind
        self.line: int | None = None
        super().__init__(message)


class ClassificationDefinitionError(PatentQueryError):
    """A classification definition uses something other than '+' and codes."""

    pass


class SerializationError(PatentQueryError):
    """An AST interchange document is malformed."""

    pass


class QueryImportError(PatentQueryError):
    """A downstream query string could not be imported."""

    def __init__(self, query: str, message: str) -> None:
        self.query = query
        super().__init__(f"Failed to import query '{query}': {message}")


# Entity Not Found Errors
class NotFoundError(PatentQueryError):
    """Requested entity not found."""

    pass


class EntityNotFoundError(NotFoundError):
    """Entity id is not in the repository."""

    def __init__(self, entity_id: str) -> None:
        self.entity_id = entity_id
        super().__init__(f"Entity not found: {entity_id}")


# Validation Errors
class ValidationError(PatentQueryError):
    """Invalid input value."""

    def __init__(self, field: str, value: object, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class EntityLimitError(PatentQueryError):
    """Too many entities of one kind."""

    def __init__(self, kind: str, limit: int) -> None:
        self.kind = kind
        self.limit = limit
        super().__init__(
            f"At most {limit} {kind} entities can be created; remove an existing one first"
        )
