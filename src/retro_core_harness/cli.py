# src/retro_core_harness/cli.py
"""
コマンドラインのエントリポイント。

    retro-core-harness run suites/nes.yaml
    retro-core-harness screenshot roms/smb.nes 120000 --core mycore.factory:make_core
    retro-core-harness check-trace test-roms/nestest.log

引数が不足・不正な場合（未知のオプションを含む）は診断メッセージを表示して終了コード2を返します。
"""
import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import List, Optional

from retro_core_harness.common.errors import HarnessError
from retro_core_harness.config.builder import SuiteBuilder, resolve_core_factory
from retro_core_harness.config.loader import SuiteConfigLoader
from retro_core_harness.config.models import HarnessConfig
from retro_core_harness.harness.cases import TraceSelfCheckCase, capture_screenshot
from retro_core_harness.harness.orchestrator import Orchestrator
from retro_core_harness.video.image import save_frame_png

logger = logging.getLogger(__name__)

USAGE_ERROR = 2


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s.%(msecs)03d %(filename)s:%(lineno)d: %(message)s",
        datefmt="%H:%M:%S",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="retro-core-harness",
                                     description="Conformance test harness for emulator cores")
    parser.add_argument("--debug", action="store_true", help="Log every driven step")
    parser.add_argument("--color", action="store_true", help="Colorize pass/fail lines")
    sub = parser.add_subparsers(dest="command")

    run = sub.add_parser("run", help="Run every test case of a suite file")
    run.add_argument("suite", nargs="?", help="YAML suite file")
    run.add_argument("--core", help="Core factory 'package.module:callable' (overrides the suite)")
    run.add_argument("--lenient-cycles", action="store_true",
                     help="Do not require golden trace cycle counts to match")

    shot = sub.add_parser("screenshot", help="Run a ROM for a number of cycles and save the last frame")
    shot.add_argument("rom", nargs="?", help=".nes file")
    shot.add_argument("cycles", nargs="?", help="Number of CPU cycles to run for")
    shot.add_argument("--core", help="Core factory 'package.module:callable'")
    shot.add_argument("--output", default="images", help="Directory for <rom>-<cycles>.png")

    check = sub.add_parser("check-trace", help="Replay a golden trace against itself")
    check.add_argument("log", nargs="?", help="Golden trace file")
    check.add_argument("--lenient-cycles", action="store_true")
    return parser


def _harness_config(args: argparse.Namespace, base: Optional[HarnessConfig] = None) -> HarnessConfig:
    config = base or HarnessConfig()
    changes = {}
    if args.debug:
        changes["debug"] = True
    if args.color:
        changes["color"] = True
    if getattr(args, "lenient_cycles", False):
        changes["strict_cycles"] = False
    return dataclasses.replace(config, **changes)


def _run_suite(args: argparse.Namespace) -> int:
    if not args.suite:
        print("Give a suite file to run")
        return USAGE_ERROR
    suite_path = Path(args.suite)
    if not suite_path.is_file():
        print(f"Suite file does not exist: '{suite_path}'")
        return USAGE_ERROR

    suite = SuiteConfigLoader().load_from_file(str(suite_path))
    if args.core:
        suite.core_factory = args.core
    config = _harness_config(args, suite.harness)
    builder = SuiteBuilder(suite_path.parent)
    factory = builder.build_factory(suite)
    cases = builder.build_cases(suite)

    result = Orchestrator(factory, config).run_all(cases)
    return result.exit_code


def _screenshot(args: argparse.Namespace) -> int:
    if not args.rom or not args.cycles:
        print("Give a .nes file and a number of cycles to run for")
        return USAGE_ERROR
    try:
        cycles = int(args.cycles, 10)
    except ValueError as e:
        print(f"Could not parse cycles as an integer '{args.cycles}': {e}")
        return USAGE_ERROR
    if cycles <= 0:
        print(f"Give a positive number of cycles: {cycles}")
        return USAGE_ERROR
    if not args.core:
        print("Give a core factory with --core package.module:callable")
        return USAGE_ERROR
    if not Path(args.rom).is_file():
        print(f"ROM file does not exist: '{args.rom}'")
        return USAGE_ERROR

    config = _harness_config(args)
    factory = resolve_core_factory(args.core)
    try:
        core = factory(args.rom, config)
    except Exception as e:
        print(f"Could not create a core for '{args.rom}': {type(e).__name__}: {e}")
        return 1
    frame = capture_screenshot(core, cycles, config)
    out = save_frame_png(frame, args.output, Path(args.rom).stem, cycles)
    logger.info("Saved screenshot to %s", out)
    return 0


def _check_trace(args: argparse.Namespace) -> int:
    if not args.log:
        print("Give a golden trace file to check")
        return USAGE_ERROR
    config = _harness_config(args)
    result = Orchestrator(None, config).run_all([TraceSelfCheckCase(args.log, args.log)])
    return result.exit_code


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # argparse は不正なオプションで usage とエラーを表示した後に終了しようとする
        return USAGE_ERROR if e.code else 0
    _configure_logging(args.debug)

    commands = {"run": _run_suite, "screenshot": _screenshot, "check-trace": _check_trace}
    command = commands.get(args.command)
    if command is None:
        parser.print_usage()
        return USAGE_ERROR
    try:
        return command(args)
    except (HarnessError, OSError) as e:
        print(f"Error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
