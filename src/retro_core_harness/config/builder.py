import importlib
from pathlib import Path
from typing import List, Optional, Union

from retro_core_harness.common.errors import ConfigError
from retro_core_harness.common.types import CoreFactory
from retro_core_harness.harness.cases import (
    GoldenTraceCase, HarnessCase, MemoryResultCase, SentinelCase, discover_screenshot_cases,
)
from retro_core_harness.runner.sentinel import CycleCountBudget, SentinelBudget
from .models import SuiteConfig


# @intent:responsibility "package.module:callable" 形式の文字列からコアファクトリを解決します。
def resolve_core_factory(path: str) -> CoreFactory:
    module_name, sep, attribute = path.partition(":")
    if not sep or not module_name or not attribute:
        raise ConfigError(f"Core factory must look like 'package.module:callable', got '{path}'")
    try:
        target = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigError(f"Could not import core factory module '{module_name}': {e}") from e
    for part in attribute.split("."):
        if not hasattr(target, part):
            raise ConfigError(f"'{module_name}' has no attribute '{attribute}'")
        target = getattr(target, part)
    if not callable(target):
        raise ConfigError(f"Core factory '{path}' is not callable")
    return target


# @intent:responsibility スイート設定（Config）に基づいて、実行順に並んだテストケース列を生成します。
# @intent:rationale 相対パスはスイートファイルのディレクトリ（base_directory）から解決します。
#                  未指定の場合はカレントディレクトリ基準です。
class SuiteBuilder:
    def __init__(self, base_directory: Optional[Union[str, Path]] = None):
        self._base = Path(base_directory) if base_directory is not None else None

    def _resolve(self, path: str) -> str:
        if self._base is None or Path(path).is_absolute():
            return path
        return str(self._base / path)

    def build_cases(self, config: SuiteConfig) -> List[HarnessCase]:
        cases: List[HarnessCase] = []

        for entry in config.golden_traces:
            cases.append(GoldenTraceCase(
                entry.name, self._resolve(entry.rom), self._resolve(entry.log),
                start_pc=entry.start_pc, start_cycle=entry.start_cycle, start_status=entry.start_status,
            ))

        for entry in config.sentinel_tests:
            cases.append(SentinelCase(
                entry.name, self._resolve(entry.rom), SentinelBudget(entry.pass_address, entry.fail_address),
            ))

        for entry in config.memory_tests:
            cases.append(MemoryResultCase(
                entry.name, self._resolve(entry.rom),
                CycleCountBudget(entry.cycles, entry.result_address, entry.success_value),
            ))

        if config.screenshots is not None:
            cases.extend(discover_screenshot_cases(
                self._resolve(config.screenshots.directory),
                self._resolve(config.screenshots.rom_directory),
                config.screenshots.rom_extension,
            ))

        return cases

    def build_factory(self, config: SuiteConfig) -> CoreFactory:
        if not config.core_factory:
            raise ConfigError("Suite does not name a core_factory")
        return resolve_core_factory(config.core_factory)
