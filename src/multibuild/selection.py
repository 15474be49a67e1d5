"""Per-target "build this" selection."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from .errors import InvalidTarget
from .targets import TargetId, enumeration_order

_logger = logging.getLogger("multibuild.selection")


class SelectionStore:
    """Maps each available target to whether it is selected for the next run.

    Keys always mirror the last catalog passed to :meth:`reconcile`; targets
    that disappear from the catalog are pruned, new ones start unselected.
    """

    def __init__(self, initial: Optional[dict[TargetId, bool]] = None):
        self._selection: dict[TargetId, bool] = dict(initial or {})

    def reconcile(self, available: Iterable[TargetId]) -> None:
        available = set(available)
        for target in available:
            if target not in self._selection:
                self._selection[target] = False

        stale = [t for t in self._selection if t not in available]
        for target in stale:
            _logger.debug("Pruning unsupported target %s from selection", target.value)
            del self._selection[target]

    def toggle(self, target: TargetId, selected: bool) -> None:
        if target not in self._selection:
            raise InvalidTarget(f"Target {target.value} is not in the current catalog")
        self._selection[target] = bool(selected)

    def is_selected(self, target: TargetId) -> bool:
        return self._selection.get(target, False)

    def selected(self) -> list[TargetId]:
        """Selected targets in enumeration order (not insertion order)."""
        return enumeration_order(t for t, on in self._selection.items() if on)

    def count(self) -> int:
        return sum(1 for on in self._selection.values() if on)

    def targets(self) -> list[TargetId]:
        return enumeration_order(self._selection)

    def __contains__(self, target: object) -> bool:
        return target in self._selection

    def __len__(self) -> int:
        return len(self._selection)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SelectionStore):
            return NotImplemented
        return self._selection == other._selection

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, bool]:
        return {t.value: self._selection[t] for t in self.targets()}

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "SelectionStore":
        """Build a store from ``{target_name: bool}``; unknown names are skipped."""
        selection: dict[TargetId, bool] = {}
        for name, on in (data or {}).items():
            try:
                target = TargetId.parse(str(name))
            except ValueError:
                _logger.warning("Ignoring unknown target %r in saved selection", name)
                continue
            selection[target] = bool(on)
        return cls(selection)
