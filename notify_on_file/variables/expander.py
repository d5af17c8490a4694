"""
Placeholder expansion - replaces ${...} forms in templates.

One pass applies every catalog pattern once, in catalog order. Passes repeat
until no "${" is left, a pass changes nothing, or MAX_PASSES is reached, so
chained variables such as ${userHome} -> ${env:HOME} -> /home/me resolve
while unknown or self-referential placeholders cannot loop forever.
"""

import logging
import re
from pathlib import Path
from typing import Callable, Iterable, Optional

from ..exceptions import ResolutionError
from .resolver import CATALOG, Variable, VariableResolver

logger = logging.getLogger(__name__)

FALLBACK = "Unknown"
"""Replacement for a placeholder that could not be resolved."""

MAX_PASSES = 32


class PlaceholderExpander:
    """
    Expands templates against a VariableResolver.

    Usage:
        expander = PlaceholderExpander(resolver, report=ui.show_error_message)
        expander.expand("${relativeFile} changed", file=Path("/proj/src/app.js"))
    """

    def __init__(
        self,
        resolver: VariableResolver,
        report: Optional[Callable[[str], None]] = None,
        variables: Iterable[Variable] = CATALOG,
        max_passes: int = MAX_PASSES,
    ):
        self.resolver = resolver
        self._report = report
        self._variables = [(v, v.regex) for v in variables]
        self.max_passes = max_passes

    def expand(self, template, file: Optional[Path] = None):
        """
        Fully expand a template.

        Args:
            template: Text with ${...} placeholders (non-strings pass through)
            file: The triggering file, if the expansion is for a file event

        Returns:
            The expanded text
        """
        if not isinstance(template, str):
            return template

        text = template
        passes = 0
        while "${" in text and passes < self.max_passes:
            expanded = self.expand_once(text, file)
            passes += 1
            if expanded == text:
                break
            text = expanded

        if passes >= self.max_passes and "${" in text:
            logger.warning(f"Stopped expanding after {passes} passes: {template!r}")

        return text

    def expand_once(self, text: str, file: Optional[Path] = None) -> str:
        """Apply every catalog pattern once, in order."""
        for variable, regex in self._variables:
            text = regex.sub(lambda m, v=variable: self._replace(v, m, file), text)
        return text

    def _replace(self, variable: Variable, match: re.Match, file: Optional[Path]) -> str:
        try:
            if variable.needs_file and file is None:
                raise ResolutionError(f"{match.group(0)} can only be used for a file event")
            return variable.resolve(self.resolver, file, *match.groups())
        except ResolutionError as e:
            self._diagnose(str(e))
            return FALLBACK

    def _diagnose(self, message: str) -> None:
        logger.warning(f"Variable substitution: {message}")
        if self._report:
            try:
                self._report(message)
            except Exception as e:
                logger.error(f"Error reporting diagnostic: {e}", exc_info=True)
