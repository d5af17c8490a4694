"""${...} variable substitution."""

from .resolver import CATALOG, Variable, VariableResolver
from .expander import FALLBACK, MAX_PASSES, PlaceholderExpander

__all__ = [
    "CATALOG",
    "Variable",
    "VariableResolver",
    "FALLBACK",
    "MAX_PASSES",
    "PlaceholderExpander",
]
