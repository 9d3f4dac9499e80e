# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Command line entry point: convert dlib XML networks to caffe python scripts."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from .compatibility import scan_layer_graph, summarize_report
from .config import ConverterConfig, load_config
from .errors import ConfigurationError, ConversionError
from .generate_caffe_code import convert_dlib_xml_to_caffe_python_code
from .graph_builder import parse_dlib_xml
from .support_registry import get_input_detail_names, get_supported_detail_names

logger = logging.getLogger(__name__)

USAGE_TEXT = (
    "Give this program an xml file generated by dlib::net_to_xml() and it will\n"
    "convert it into a python file that outputs a caffe model containing the dlib model."
)
ERROR_BANNER = "\n\n*************** ERROR CONVERTING TO CAFFE ***************"


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="dlib2caffe",
        description=USAGE_TEXT,
    )
    parser.add_argument("files", nargs="*", help="XML files written by dlib::net_to_xml().")
    parser.add_argument("--config", type=str, default=None, help="YAML file with converter settings.")
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Override one converter setting, e.g. --set precision=12.",
    )
    parser.add_argument(
        "--keep-going",
        action="store_true",
        help="Convert the remaining files after a failure instead of stopping.",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only report which layers can be converted; no scripts are written.",
    )
    parser.add_argument("--json-out", type=str, default=None, help="With --check, write the reports as JSON here.")
    parser.add_argument(
        "--strict-warnings",
        action="store_true",
        help="With --check, treat warnings as incompatible (exit code 1).",
    )
    parser.add_argument(
        "--list-supported-types",
        action="store_true",
        help="Print the dlib layers the converter understands and exit.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Log progress (-v) or per layer details (-vv).",
    )
    return parser.parse_args(argv)


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _list_supported_types() -> None:
    print("Supported dlib layers:")
    for name in get_supported_detail_names():
        print(f"  - {name}")
    print("Supported dlib input layers:")
    for name in get_input_detail_names():
        print(f"  - {name}")


def _check_files(args: argparse.Namespace) -> int:
    exit_code = 0
    reports = []
    for xml_path in args.files:
        try:
            graph = parse_dlib_xml(xml_path)
        except ConversionError as exc:
            print(f"ERROR: {xml_path}: {exc}")
            exit_code = 1
            continue
        report = scan_layer_graph(graph, network_name=Path(xml_path).name)
        print(summarize_report(report))
        reports.append(report.to_dict())
        exit_code = max(exit_code, report.exit_code(args.strict_warnings))

    if args.json_out:
        out_path = Path(args.json_out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(json.dumps(reports, indent=2))
        print(f"\nWrote JSON report to: {out_path}")
    return exit_code


def _convert_files(files: Sequence[str], config: ConverterConfig, keep_going: bool) -> int:
    failed: List[str] = []
    for xml_path in files:
        try:
            convert_dlib_xml_to_caffe_python_code(xml_path, config)
        except ConversionError as exc:
            logger.error("Conversion of %s failed: %s", xml_path, exc)
            print(ERROR_BANNER)
            print(exc)
            if not keep_going:
                return 1
            failed.append(xml_path)

    if failed:
        print(f"\n{len(failed)} of {len(files)} networks failed to convert: {', '.join(failed)}")
        return 1
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    _configure_logging(args.verbose)

    if args.list_supported_types:
        _list_supported_types()
        return 0

    if not args.files:
        print(USAGE_TEXT)
        return 0

    if args.check:
        return _check_files(args)

    try:
        config = load_config(args.config, args.overrides)
    except ConfigurationError as exc:
        print(f"ERROR: {exc}")
        return 2
    return _convert_files(args.files, config, args.keep_going or config.keep_going)


if __name__ == "__main__":
    raise SystemExit(main())
