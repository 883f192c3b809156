import time
import uuid
import json
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple

from zipmerge.models import MergeReport
from zipmerge.stages.dedup import ThrottlePolicy, dedup_patterns
from zipmerge.stages.merger import zip_merge
from zipmerge.utils import elapsed_ms, get_logger, load_config, read_lines, validate_config, with_defaults, write_lines

logger = get_logger(__name__)

def _apply_overrides(cfg: Dict[str, Any], overrides: Optional[Dict[str, Any]]) -> None:
    if not overrides:
        return

    dd = cfg.setdefault("dedup", {})
    if overrides.get("input_thoroughness") is not None:
        dd["input_thoroughness"] = int(overrides["input_thoroughness"])
    if overrides.get("merge_thoroughness") is not None:
        dd["merge_thoroughness"] = int(overrides["merge_thoroughness"])
    if overrides.get("threshold_percent") is not None:
        dd["threshold_percent"] = int(overrides["threshold_percent"])
    if overrides.get("max_workers") is not None:
        dd["max_workers"] = int(overrides["max_workers"])
    if overrides.get("eager_rebuild") is not None:
        dd["eager_rebuild"] = bool(overrides["eager_rebuild"])

    if overrides.get("report") is not None:
        cfg.setdefault("output", {})["report"] = overrides["report"]

def _dedup(lines: List[str], thoroughness: int, dd: Dict[str, Any]) -> List[str]:
    policy = ThrottlePolicy(thoroughness=thoroughness, threshold_percent=dd["threshold_percent"])
    return dedup_patterns(
        lines,
        policy=policy,
        max_workers=dd.get("max_workers"),
        eager_rebuild=bool(dd.get("eager_rebuild")),
    )

def merge_sequences(a: List[str], b: List[str], cfg: Optional[Dict[str, Any]] = None) -> Tuple[List[str], MergeReport]:
    """Deduplicate both inputs, splice them, and deduplicate the result."""
    cfg = with_defaults(cfg)
    dd = cfg["dedup"]
    timings: Dict[str, int] = {}

    t0 = time.monotonic()
    dedup_a = _dedup(a, dd["input_thoroughness"], dd)
    timings["dedup_input1"] = elapsed_ms(t0)
    logger.info("dedup input1 lines=%d kept=%d took_ms=%d", len(a), len(dedup_a), timings["dedup_input1"])

    t1 = time.monotonic()
    dedup_b = _dedup(b, dd["input_thoroughness"], dd)
    timings["dedup_input2"] = elapsed_ms(t1)
    logger.info("dedup input2 lines=%d kept=%d took_ms=%d", len(b), len(dedup_b), timings["dedup_input2"])

    t2 = time.monotonic()
    merged = zip_merge(dedup_a, dedup_b)
    timings["merge"] = elapsed_ms(t2)
    logger.info("merged lines=%d took_ms=%d", len(merged), timings["merge"])

    # The splice can put copies of a block next to each other; scan every size.
    t3 = time.monotonic()
    result = _dedup(merged, dd["merge_thoroughness"], dd)
    timings["dedup_merged"] = elapsed_ms(t3)
    logger.info("dedup merged lines=%d kept=%d took_ms=%d", len(merged), len(result), timings["dedup_merged"])

    report = MergeReport(input1_len=len(a), input2_len=len(b), merged_len=len(result), timings_ms=timings)
    return result, report

def run_merge(input1: str, input2: str, output: str, cfg: Optional[Dict[str, Any]] = None) -> MergeReport:
    """Merge two line files into ``output`` and return the size report."""
    cfg = with_defaults(cfg)
    encoding = cfg["io"]["encoding"]

    t0 = time.monotonic()
    lines1 = read_lines(input1, encoding)
    lines2 = read_lines(input2, encoding)
    logger.info("read input1=%d input2=%d took_ms=%d", len(lines1), len(lines2), elapsed_ms(t0))

    result, report = merge_sequences(lines1, lines2, cfg)

    write_lines(result, output, encoding)
    logger.info(
        "input1_len=%d input2_len=%d merged_len=%d best_case=%d worst_case=%d",
        report.input1_len,
        report.input2_len,
        report.merged_len,
        report.best_case,
        report.worst_case,
    )
    logger.info("output written path=%s", output)

    report_path = cfg["output"].get("report")
    if report_path:
        path = Path(report_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(report.model_dump(mode="json"), ensure_ascii=False, indent=2), encoding="utf-8")
        logger.info("report written path=%s", path)

    return report

def run_once(
    input1: str,
    input2: str,
    output: str,
    *,
    config_path: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> MergeReport:
    """Execute the merge once with an optional config file path."""
    run_id = uuid.uuid4().hex[:8]
    logger.info("=== run start id=%s ===", run_id)

    try:
        cfg = load_config(config_path)
        _apply_overrides(cfg, overrides)
        validate_config(cfg)
        return run_merge(input1, input2, output, cfg)

    except Exception as e:
        logger.error("Pipeline execution failed: %s", e)
        raise
    finally:
        logger.info("=== run end id=%s ===", run_id)
