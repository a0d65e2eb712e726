#!/usr/bin/env python3

"""
feindexer.aggregate
-------------------
Ancestor aggregation for matrix-style indexes (anatomy × allele grids).

Each raw observation ``(entity, object, term, outcome)`` updates the cell of
the observed term directly and then every ancestor cell in *ancestor mode*:

==============  ===========================  ===================================
outcome         direct cell                  ancestor cell
==============  ===========================  ===================================
Yes             detected += 1                detected += 1, children += 1
No              not_detected += 1            questionable = True, children += 1
Ambiguous       ambiguous += 1               questionable = True, children += 1
==============  ===========================  ===================================

Accumulation happens in stage-specific (EMAPS) term space; cells are mapped
to stage-independent (EMAPA) terms only by :meth:`CellBlock.collapse`, right
before documents are emitted.  The ancestor closure comes precomputed from
the database and is assumed acyclic.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, Hashable, Iterable, Iterator, List, Mapping, NamedTuple, Tuple

from feindexer.errors import DataAnomalyError

LOGGER = logging.getLogger(__name__)


class Outcome(enum.Enum):
    DETECTED = "Yes"
    NOT_DETECTED = "No"
    AMBIGUOUS = "Ambiguous"

    @classmethod
    def parse(cls, text: Any) -> "Outcome":
        """``"Yes"`` / ``"No"`` / ``"Ambiguous"`` (any case, surrounding blanks ignored)."""
        wanted = str(text).strip().lower() if text is not None else ""
        for outcome in cls:
            if outcome.value.lower() == wanted:
                return outcome
        raise DataAnomalyError(f"unknown detection outcome {text!r}", stage="aggregate")


class CellKey(NamedTuple):
    entity_key: Hashable
    object_type: str
    object_key: Hashable
    term_key: Hashable


@dataclass
class Cell:
    detected: int = 0
    not_detected: int = 0
    ambiguous: int = 0
    children: int = 0
    questionable_descendants: bool = False

    @property
    def all_results(self) -> int:
        return self.detected + self.not_detected + self.ambiguous

    @property
    def any_ambiguous(self) -> bool:
        return self.ambiguous > 0

    def merge(self, other: "Cell") -> None:
        """Add *other*'s counts into this cell (used when collapsing stages)."""
        self.detected += other.detected
        self.not_detected += other.not_detected
        self.ambiguous += other.ambiguous
        self.children += other.children
        self.questionable_descendants = self.questionable_descendants or other.questionable_descendants


def update_cell(cell: Cell, outcome: Outcome, is_ancestor: bool) -> None:
    """Fold one observation into *cell* (see the module table)."""
    if outcome is Outcome.DETECTED:
        cell.detected += 1
        if is_ancestor:
            cell.children += 1
    elif is_ancestor:
        # negative / unclear results below are not credited to the ancestor
        cell.questionable_descendants = True
        cell.children += 1
    elif outcome is Outcome.NOT_DETECTED:
        cell.not_detected += 1
    else:
        cell.ambiguous += 1


class CellBlock:
    """Flat ``CellKey → Cell`` store for one chunk."""

    def __init__(self) -> None:
        self._cells: Dict[CellKey, Cell] = {}

    def cell(self, key: CellKey) -> Cell:
        """The cell for *key*, created empty on first use."""
        if (found := self._cells.get(key)) is None:
            found = self._cells[key] = Cell()
        return found

    def observe(
        self,
        entity_key: Hashable,
        object_type: str,
        object_key: Hashable,
        term_key: Hashable,
        outcome: Outcome,
        ancestors: Iterable[Hashable] = (),
    ) -> None:
        """Update the direct cell, then each distinct ancestor cell once."""
        update_cell(self.cell(CellKey(entity_key, object_type, object_key, term_key)), outcome, False)
        seen = set()
        for ancestor in ancestors:
            if ancestor in seen or ancestor == term_key:
                continue
            seen.add(ancestor)
            update_cell(self.cell(CellKey(entity_key, object_type, object_key, ancestor)), outcome, True)

    def collapse(self, term_map: Mapping[Any, Hashable]) -> "CellBlock":
        """
        New block with every term mapped through *term_map* (EMAPS → EMAPA).
        Cells landing on the same key are merged; an unmapped term is a
        :class:`DataAnomalyError`.
        """
        out = CellBlock()
        for key, cell in self._cells.items():
            mapped = term_map.get(key.term_key)
            if mapped is None:
                raise DataAnomalyError(f"term key {key.term_key} has no stage-independent term",
                                       stage="aggregate", detail=key)
            out.cell(key._replace(term_key=mapped)).merge(cell)
        LOGGER.debug("Collapsed %d cells to %d", len(self), len(out))
        return out

    def get(self, key: CellKey):
        return self._cells.get(key)

    def keys(self) -> List[CellKey]:
        return list(self._cells)

    def items(self) -> Iterator[Tuple[CellKey, Cell]]:
        return iter(self._cells.items())

    def sorted_items(self) -> List[Tuple[CellKey, Cell]]:
        """Cells in ``(entity, object type, object, term)`` order."""
        return sorted(self._cells.items(), key=lambda kv: kv[0])

    def entity_keys(self) -> List[Hashable]:
        return list(dict.fromkeys(k.entity_key for k in self._cells))

    def __contains__(self, key: object) -> bool:
        return key in self._cells

    def __len__(self) -> int:
        return len(self._cells)
