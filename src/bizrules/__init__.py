"""bizrules - business rule engine.

Condition trees with stable node IDs, validation, field dependency
extraction, evaluation against form values and UI effect resolution.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
