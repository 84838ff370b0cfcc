"""Date and table extraction for located blocks, plus the extract stage runner."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Iterable

from bs4.element import Tag

from sbc_cases.common.constants import INTERMEDIATE_FILENAME, NBSP
from sbc_cases.common.errors import (
    DateParseError,
    SchemaCollapseError,
    SchemaError,
    StructuralMismatchError,
)
from sbc_cases.common.fs import write_json
from sbc_cases.common.logging import log_event, log_skip
from sbc_cases.common.models import ExtractedBlock, RawTable
from sbc_cases.pipeline.loader import load_document, parse_document
from sbc_cases.pipeline.locate import BlockPair, find_qualifying_table, locate_blocks
from sbc_cases.pipeline.normalise import normalise_table

logger = logging.getLogger(__name__)

# "April 27, 2020"; the space may be gone once NBSPs are stripped.
_LABEL_DATE_RE = re.compile(r"([A-Za-z]+)\.?\s*(\d{1,2}),\s*(\d{4})")
_MONTH_ALIASES = {"Sept": "Sep"}
_WHITESPACE_RE = re.compile(r"\s+")


def parse_date_text(text: str, formats: Iterable[str]) -> date:
    formats = list(formats)
    candidates: list[str] = []
    # Tokens like "COVID19, 2020" also match; the first one strptime accepts wins.
    for match in _LABEL_DATE_RE.finditer(text):
        month, day, year = match.groups()
        month = _MONTH_ALIASES.get(month, month)
        candidate = f"{month} {day}, {year}"
        candidates.append(candidate)
        for fmt in formats:
            try:
                return datetime.strptime(candidate, fmt).date()
            except ValueError:
                continue
    if not candidates:
        raise DateParseError(f"no date found in label text {text!r}")
    raise DateParseError(f"unparseable date in {text!r} (tried {', '.join(candidates)})")


def parse_label_date(label: Tag, formats: Iterable[str]) -> date:
    link = label.find("a")
    if link is None:
        raise DateParseError("label has no link text")
    return parse_date_text(link.get_text(" ", strip=True), formats)


def clean_header(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text.replace(NBSP, "")).strip()


def parse_table(table: Tag) -> RawTable:
    rows = table.find_all("tr")
    if not rows:
        return RawTable(headers=[], rows=[])

    headers = [clean_header(cell.get_text(" ", strip=True)) for cell in rows[0].find_all(["th", "td"])]
    parsed: list[dict[str, str]] = []
    for tr in rows[1:]:
        cells = [cell.get_text(" ", strip=True) for cell in tr.find_all(["th", "td"])]
        if not cells:
            continue
        row: dict[str, str] = {}
        for header, value in zip(headers, cells):
            row.setdefault(header, value)
        parsed.append(row)
    return RawTable(headers=headers, rows=parsed)


def extract_table(panel: Tag, required_columns: Iterable[str]) -> RawTable:
    table = find_qualifying_table(panel, required_columns)
    if table is None:
        raise StructuralMismatchError("panel holds no qualifying table")
    return parse_table(table)


@dataclass
class ExtractResult:
    blocks: list[ExtractedBlock] = field(default_factory=list)
    date_errors: int = 0
    structural_mismatches: int = 0


def extract_blocks(pairs: Iterable[BlockPair], required_columns: Iterable[str], date_formats: Iterable[str]) -> ExtractResult:
    required = list(required_columns)
    formats = list(date_formats)
    result = ExtractResult()

    for pair in pairs:
        try:
            block_date = parse_label_date(pair.label, formats)
            table = extract_table(pair.panel, required)
        except DateParseError as exc:
            result.date_errors += 1
            log_skip(logger, f"skipping block: {exc}", exc.error_code, stage="extract", block=pair.position)
            continue
        except StructuralMismatchError as exc:
            result.structural_mismatches += 1
            log_skip(logger, f"skipping block: {exc}", exc.error_code, stage="extract", block=pair.position)
            continue
        result.blocks.append(ExtractedBlock(position=pair.position, date=block_date, table=table))

    return result


def run_extract(pipeline_config: dict, document_path: Path, data_dir: Path, run_id: str) -> dict:
    blocks_cfg = pipeline_config["blocks"]
    columns_cfg = pipeline_config["columns"]

    soup = parse_document(load_document(document_path))
    located = locate_blocks(soup, blocks_cfg["label_selector"], blocks_cfg["required_columns"])
    extracted = extract_blocks(
        located.blocks,
        blocks_cfg["required_columns"],
        pipeline_config["dates"]["formats"],
    )

    records: list[dict] = []
    schema_errors = 0
    rows_rejected = 0
    rejected_samples: list[dict] = []

    for block in extracted.blocks:
        try:
            normalised = normalise_table(
                block.table,
                block.date,
                area_column=columns_cfg["area"],
                case_candidates=columns_cfg["case_candidates"],
                excluded_markers=columns_cfg["excluded_area_markers"],
                zero_placeholder=columns_cfg["zero_placeholder"],
            )
        except SchemaError as exc:
            schema_errors += 1
            log_skip(
                logger,
                f"skipping table dated {block.date.isoformat()}: {exc}",
                exc.error_code,
                stage="extract",
                block=block.position,
            )
            continue

        for rejected in normalised.rejected:
            log_skip(
                logger,
                f"skipping row {rejected['area']!r} dated {block.date.isoformat()}: {rejected['reason']}",
                rejected["error_code"],
                stage="extract",
                block=block.position,
            )
            if len(rejected_samples) < 50:
                rejected_samples.append({"block": block.position, "date": block.date.isoformat(), **rejected})
        rows_rejected += len(normalised.rejected)

        for record in normalised.records:
            records.append({"block": block.position, **record.to_dict()})

    located_count = len(located.blocks)
    extracted_count = len(extracted.blocks)
    ratio = pipeline_config["schema_failure_ratio"]
    if located_count == 0:
        raise SchemaCollapseError(f"no case tables located in {document_path}")
    if extracted_count == 0:
        raise SchemaCollapseError(f"none of {located_count} located blocks yielded a dated table")
    # Only blocks that reached normalisation can fail on schema.
    if schema_errors / extracted_count > ratio:
        raise SchemaCollapseError(
            f"{schema_errors} of {extracted_count} extracted tables lack a known case column"
        )
    if not records:
        raise SchemaCollapseError(f"no usable rows extracted from {document_path}")

    payload = {
        "run_id": run_id,
        "document": str(document_path),
        "blocks_located": located_count,
        "blocks_extracted": len(extracted.blocks),
        "skips": {
            "not_labels": located.not_labels,
            "structural_mismatches": located.structural_mismatches + extracted.structural_mismatches,
            "date_errors": extracted.date_errors,
            "schema_errors": schema_errors,
            "rows_rejected": rows_rejected,
        },
        "rejected_samples": rejected_samples,
        "record_count": len(records),
        "records": records,
    }
    write_json(data_dir / "intermediate" / INTERMEDIATE_FILENAME, payload)

    log_event(
        logger,
        "extraction complete",
        stage="extract",
        event="EXTRACT_DONE",
        status="ok",
        rows_in=located_count,
        rows_out=len(records),
    )
    return payload
