#!/usr/bin/env python3
import argparse
import sys

from zipmerge.orchestrator import run_once

PROMPTS = ("First input file: ", "Second input file: ", "Output file: ")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zipmerge",
        usage="zipmerge <input_file1> <input_file2> <output_file> [options]",
        description="Merge two line files around their shared runs and drop repeated blocks",
    )
    parser.add_argument("paths", nargs="*", help="input_file1 input_file2 output_file")
    parser.add_argument("--interactive", action="store_true", help="Prompt for the three paths")
    parser.add_argument("--config", help="Path to YAML config")
    parser.add_argument("--thoroughness", dest="input_thoroughness", type=int, help="Window-size throttle for each input (>= 1)")
    parser.add_argument("--merge-thoroughness", dest="merge_thoroughness", type=int, help="Window-size throttle for the merged result (>= 1)")
    parser.add_argument("--threshold-percent", dest="threshold_percent", type=int, help="Window sizes up to this percentage are always scanned")
    parser.add_argument("--workers", dest="max_workers", type=int, help="Thread pool size for dedup sweeps")
    parser.add_argument("--eager-rebuild", dest="eager_rebuild", action="store_true", help="Rebuild after the first window size with repeats")
    parser.add_argument("--no-eager-rebuild", dest="eager_rebuild", action="store_false", help="Rebuild once per full sweep")
    parser.add_argument("--report", dest="report", help="Write a JSON size report to this path")
    parser.set_defaults(eager_rebuild=None)
    return parser


def main(argv=None):
    parser = _build_parser()
    args = parser.parse_args(argv)

    paths = list(args.paths)
    if args.interactive and not paths:
        paths = [input(prompt).strip() for prompt in PROMPTS]
    if len(paths) != 3:
        parser.print_usage(sys.stderr)
        return

    overrides = {
        "input_thoroughness": args.input_thoroughness,
        "merge_thoroughness": args.merge_thoroughness,
        "threshold_percent": args.threshold_percent,
        "max_workers": args.max_workers,
        "eager_rebuild": args.eager_rebuild,
        "report": args.report,
    }

    input1, input2, output = paths
    report = run_once(input1, input2, output, config_path=args.config, overrides=overrides)
    print(
        f"File1 Len: {report.input1_len}, File2 Len: {report.input2_len}, "
        f"Merged Len: {report.merged_len}, Best Case: {report.best_case}, Worst Case: {report.worst_case}"
    )
    print(f"Data has been saved to: {output}")


if __name__ == "__main__":
    main()
