from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from survey_insight.config.loader import ConfigError, load_config, resolve_config_path
from survey_insight.logging.init import log_summary, set_debug, setup_logging
from survey_insight.models.column_mapping import ColumnMapping
from survey_insight.models.config_models import SurveyConfig
from survey_insight.models.row_record import ordered_flags
from survey_insight.services.inference import apply_mapping_overrides, infer_mappings
from survey_insight.services.orchestrator import ProcessingError, run_import
from survey_insight.services.summary import render_summary_line
from survey_insight.services.views import dashboard_snapshot, flagged_active_count
from survey_insight.tabular.reader import DecodeError, EmptyFileError, decode_file

"""CLI entrypoint.

Flow:
- Load .env (may point SURVEY_INSIGHT_CONFIG at a config file)
- Load config (YAML + schema)
- Decode the survey file (or generate sample data with --mock)
- Infer column roles, apply mapping overrides, analyze rows
- Optionally exclude flagged rows, print report + SUMMARY line

Exit codes: 0 = clean import, 2 = flagged rows remain active, 1 = fatal.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_FLAGGED_REMAIN = 2


def _load_env_file(path: Path, override: bool = False) -> None:
    """Load .env using python-dotenv. Existing environment wins unless override=True."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Survey response import & data quality check")
    p.add_argument("file", nargs="?", help="Survey export (.xlsx / .csv); defaults to source_file in config")
    p.add_argument("--config", help="Config file (default: $SURVEY_INSIGHT_CONFIG or config/survey.yml)")
    p.add_argument("--mock", action="store_true", help="Import generated sample data instead of a file")
    p.add_argument("--seed", type=int, default=None, help="Random seed for --mock")
    p.add_argument("--exclude-flagged", action="store_true", help="Exclude every flagged row after import")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print headers, inferred mapping & first rows then exit")
    return p.parse_args(argv)


def _format_mapping(mapping: ColumnMapping) -> str:
    return f"  {mapping.type.value:<11} {mapping.variable_code:<12} {mapping.original_header}"


def _inspect_data(path: Path, cfg: SurveyConfig) -> int:
    print(f"FILE: {path.name}")
    try:
        table = decode_file(
            path,
            keep_na_strings=cfg.decoder.keep_na_strings,
            null_sentinels=cfg.decoder.null_sentinels,
        )
    except (DecodeError, EmptyFileError) as e:
        print(f"  read_error: {e}")
        return EXIT_FATAL
    print(f"  rows={len(table.rows)} cols={len(table.headers)}")
    mappings = apply_mapping_overrides(
        infer_mappings(table.headers, cfg.scale_header_min_length), cfg.mapping_overrides
    )
    print("  MAPPING:")
    for m in mappings:
        print(_format_mapping(m))
    # datetime 含む場合 JSON 化できないため isoformat で表示
    safe_rows = []
    for r in table.rows[:3]:
        safe_rows.append({k: (v.isoformat() if hasattr(v, "isoformat") else v) for k, v in r.items()})
    print("  sample_rows=", safe_rows)
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # NOTE: 空リスト [] が与えられた場合に sys.argv[1:] が混入しないよう None のときのみ読む
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"))

    if args.debug:
        set_debug()

    config_path, required = resolve_config_path(args.config)
    try:
        cfg = load_config(config_path, required=required)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    source = Path(args.file) if args.file else None

    if args.inspect_data:
        target = source or (Path(cfg.source_file) if cfg.source_file else None)
        if target is None:
            logger.error("inspect: no file given")
            return EXIT_FATAL
        return _inspect_data(target, cfg)

    try:
        result = run_import(
            cfg,
            source,
            use_mock=args.mock,
            mock_seed=args.seed,
            exclude_flagged=True if args.exclude_flagged else None,
        )
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL

    if result.failure is not None:
        return EXIT_FATAL

    project = result.project
    logger.info("column mapping:")
    for m in project.mappings:
        logger.info(_format_mapping(m))

    for row in project.rows:
        if row.flags:
            labels = ", ".join(f.label for f in ordered_flags(row.flags))
            state = "excluded" if row.is_excluded else "active"
            logger.info(f"  {row.id} [{state}] {labels}")

    snapshot = dashboard_snapshot(project, cfg.max_scale_items)
    logger.info(f"valid_n={snapshot.valid_n} filtered_n={snapshot.filtered_n} analysed_variables={snapshot.analysed_variables}")
    if snapshot.gender_distribution:
        logger.info(f"gender={snapshot.gender_distribution}")
    for item in snapshot.scale_means:
        logger.info(f"mean {item.variable_code}={item.mean if item.mean is not None else '-'}")
    if result.issue_log is not None:
        logger.info(f"issue log: {result.issue_log}")

    summary_line = render_summary_line(result)
    # log_summary が "SUMMARY " を付与するため先頭ラベルを除去
    log_summary(summary_line[len("SUMMARY "):])

    if flagged_active_count(project) > 0:
        return EXIT_FLAGGED_REMAIN
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
