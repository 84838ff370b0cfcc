"""Locate paired (date label, table panel) blocks in the status page."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from bs4 import BeautifulSoup
from bs4.element import Tag

from sbc_cases.common.errors import StructuralMismatchError
from sbc_cases.common.logging import log_skip

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlockPair:
    position: int
    label: Tag
    panel: Tag


@dataclass
class LocateResult:
    blocks: list[BlockPair] = field(default_factory=list)
    candidates: int = 0
    not_labels: int = 0
    structural_mismatches: int = 0


def table_matches(table: Tag, required_columns: Iterable[str]) -> bool:
    text = table.get_text(" ")
    return all(column in text for column in required_columns)


def find_qualifying_table(container: Tag, required_columns: Iterable[str]) -> Tag | None:
    """Return the first table in ``container`` (or ``container`` itself) holding every required column."""
    required = list(required_columns)
    tables = [container] if container.name == "table" else []
    tables.extend(container.find_all("table"))
    for table in tables:
        if table_matches(table, required):
            return table
    return None


def is_date_label(element: Tag) -> bool:
    return element.find("a") is not None


def pair_label(label: Tag, required_columns: Iterable[str]) -> Tag:
    panel = label.find_next_sibling()
    if panel is None:
        raise StructuralMismatchError("label has no following sibling element")
    if find_qualifying_table(panel, required_columns) is None:
        raise StructuralMismatchError("following sibling holds no qualifying table")
    return panel


def locate_blocks(soup: BeautifulSoup, label_selector: str, required_columns: Iterable[str]) -> LocateResult:
    required = list(required_columns)
    result = LocateResult()

    for element in soup.select(label_selector):
        result.candidates += 1
        if not is_date_label(element):
            result.not_labels += 1
            continue
        try:
            panel = pair_label(element, required)
        except StructuralMismatchError as exc:
            result.structural_mismatches += 1
            log_skip(
                logger,
                f"skipping label {element.get('id', '')!r}: {exc}",
                exc.error_code,
                stage="extract",
                block=result.candidates - 1,
            )
            continue
        result.blocks.append(BlockPair(position=len(result.blocks), label=element, panel=panel))

    return result
