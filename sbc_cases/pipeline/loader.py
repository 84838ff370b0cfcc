"""Document loading: read the status page snapshot and pre-normalise it."""

from __future__ import annotations

import re
from pathlib import Path

from bs4 import BeautifulSoup

from sbc_cases.common.constants import NBSP
from sbc_cases.common.errors import StageError
from sbc_cases.common.fs import read_text


# Named, decimal and hex forms; html.parser also decodes "&nbsp" without the semicolon.
_NBSP_ENTITY_RE = re.compile(r"&(?:nbsp;?|#0*160(?![0-9]);?|#x0*a0(?![0-9a-f]);?)", re.IGNORECASE)


def strip_invisible(markup: str) -> str:
    # Header cells sometimes differ only by a trailing NBSP.
    return _NBSP_ENTITY_RE.sub("", markup.replace(NBSP, ""))


def load_document(path: Path) -> str:
    if not path.exists():
        raise StageError(f"Missing document snapshot: {path}")
    return strip_invisible(read_text(path))


def parse_document(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup, "html.parser")
