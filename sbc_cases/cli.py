"""CLI entrypoint for the Santa Barbara County case-count pipeline."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from sbc_cases.common.config_loader import ConfigBundle, load_all_configs
from sbc_cases.common.constants import EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS, STAGES
from sbc_cases.common.errors import ContractError, PipelineError, SchemaCollapseError
from sbc_cases.common.logging import build_logger, log_event
from sbc_cases.common.time_utils import generate_run_id, parse_run_date
from sbc_cases.pipeline.extract import run_extract
from sbc_cases.pipeline.merge import run_merge
from sbc_cases.pipeline.regions import run_aggregate
from sbc_cases.pipeline.reports import write_run_summary
from sbc_cases.pipeline.validate import run_validate


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=[*STAGES, "all"])
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--data-dir", default="./data")
    parser.add_argument("--document", default=None, help="status page snapshot; defaults to inputs.document")
    parser.add_argument("--historical", default=None, help="historical CSV; defaults to inputs.historical_csv")
    parser.add_argument("--run-date", default=None)
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    parser.add_argument("--strict", action="store_true")
    return parser.parse_args(argv)


def _input_path(override: str | None, configured: str, data_dir: Path) -> Path:
    if override:
        return Path(override)
    return data_dir / configured


def execute_stage(stage: str, args: argparse.Namespace, bundle: ConfigBundle, data_dir: Path, run_id: str, run_date: str):
    cfg = bundle.pipeline
    if stage == "extract":
        document_path = _input_path(args.document, cfg["inputs"]["document"], data_dir)
        run_extract(cfg, document_path, data_dir, run_id)
    elif stage == "merge":
        historical_path = _input_path(args.historical, cfg["inputs"]["historical_csv"], data_dir)
        run_merge(cfg, data_dir, run_id, historical_path)
    elif stage == "aggregate":
        run_aggregate(cfg, bundle.regions, data_dir, run_id)
    elif stage == "validate":
        run_validate(cfg, bundle.regions, data_dir, run_id, run_date)
    else:
        raise ValueError(f"Unknown stage: {stage}")


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    run_date = parse_run_date(args.run_date)
    config_dir = Path(args.config_dir)
    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None
    data_dir = Path(args.data_dir)

    logger = build_logger(run_id, data_dir=data_dir, level=args.log_level)
    bundle = load_all_configs(config_dir, overlay_config_dir=overlay_config_dir)
    stages = list(STAGES) if args.command == "all" else [args.command]

    failed_stages: list[str] = []

    for stage in stages:
        log_event(logger, "stage start", stage=stage, event="STAGE_START", status="ok")
        try:
            execute_stage(stage, args, bundle, data_dir, run_id, run_date)
        except PipelineError as exc:
            failed_stages.append(stage)
            logger.error(
                f"stage {stage} failed: {exc}",
                extra={"stage": stage, "event": "STAGE_FAIL", "status": "error", "error_code": exc.error_code},
            )
            if isinstance(exc, (ContractError, SchemaCollapseError)) or args.strict:
                return EXIT_HARD_FAIL
            # Later stages read this stage's output.
            break
        except Exception:
            failed_stages.append(stage)
            logger.exception(
                f"unexpected failure in stage {stage}",
                extra={"stage": stage, "event": "STAGE_FAIL", "status": "error", "error_code": "UNEXPECTED_ERROR"},
            )
            if args.strict:
                return EXIT_HARD_FAIL
            break
        log_event(logger, "stage end", stage=stage, event="STAGE_END", status="ok")

    write_run_summary(data_dir, run_id=run_id, run_date=run_date, stages=stages, failed_stages=failed_stages)
    if failed_stages:
        return EXIT_PARTIAL
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or sys.argv[1:])
    try:
        return run_command(args)
    except PipelineError:
        return EXIT_HARD_FAIL
    except Exception:
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
