"""Exceptions for rule tree operations and rule documents."""


class RuleError(Exception):
    """Base class for all rule-related errors."""
    pass


class RuleOperationError(RuleError):
    """Raised when a tree mutation is not allowed."""

    def __init__(self, message: str, node_id: str | None = None):
        self.node_id = node_id
        super().__init__(f"{message} (node {node_id})" if node_id is not None else message)


class RuleDocumentError(RuleError):
    """Raised when a rule or values document cannot be loaded."""
    pass
