"""
Listener interface for diagnostics.

Listeners receive each diagnostic as the emitter records it, bucketed by
disposition. All hooks are no-ops by default so a listener only overrides
what it needs.
"""
from typing import Iterable
import logging

from .classifier import Disposition
from .rules import RuleLevel


logger = logging.getLogger(__name__)


class DiagnosticListener:
    """Base class for diagnostic listeners."""

    def on_compliance(self, diagnostic) -> None:
        pass

    def on_non_compliance(self, diagnostic) -> None:
        pass

    def on_suppressed(self, diagnostic) -> None:
        pass

    def on_error(self, diagnostic) -> None:
        pass

    def on_not_applicable(self, diagnostic) -> None:
        pass


_HOOKS = {
    Disposition.COMPLIANT: "on_compliance",
    Disposition.VIOLATION: "on_non_compliance",
    Disposition.SUPPRESSED: "on_suppressed",
    Disposition.EVALUATION_ERROR: "on_error",
    Disposition.NOT_APPLICABLE: "on_not_applicable",
}


def notify(listeners: Iterable[DiagnosticListener], diagnostic) -> None:
    """
    Dispatch a diagnostic to the hook matching its disposition.

    A failing listener is logged and skipped; it never aborts the traversal.
    """
    hook = _HOOKS[diagnostic.disposition]
    for listener in listeners:
        try:
            getattr(listener, hook)(diagnostic)
        except Exception as e:
            logger.error(
                f"Listener {type(listener).__name__}.{hook} failed for "
                f"{diagnostic.rule_id} on {diagnostic.path}: {e}",
                exc_info=True
            )


class LoggingListener(DiagnosticListener):
    """Writes reportable diagnostics to the log."""

    def __init__(self, log: logging.Logger = None):
        self.log = log or logger

    def on_non_compliance(self, diagnostic) -> None:
        if diagnostic.level is RuleLevel.ERROR:
            self.log.error(f"[{diagnostic.path}] {diagnostic.message}")
        elif diagnostic.level is RuleLevel.WARN:
            self.log.warning(f"[{diagnostic.path}] {diagnostic.message}")
        else:
            self.log.info(f"[{diagnostic.path}] {diagnostic.message}")

    def on_suppressed(self, diagnostic) -> None:
        self.log.info(f"[{diagnostic.path}] {diagnostic.message}")

    def on_error(self, diagnostic) -> None:
        self.log.error(f"[{diagnostic.path}] {diagnostic.message}")
