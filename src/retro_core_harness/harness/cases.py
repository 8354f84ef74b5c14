# retro_core_harness/harness/cases.py
"""
テストケース定義。

各テストケースは実行のたびにコアファクトリから新しいエミュレータコアを生成し、
ドライバと比較器の組み合わせを1つ選んで実行します。フレームバッファやサイクル
カウンタもケースごとに新しく生成され、ケース間で共有されることはありません。
"""
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Union

from retro_core_harness.common.errors import ConfigError
from retro_core_harness.common.types import CoreFactory
from retro_core_harness.config.models import HarnessConfig
from retro_core_harness.core.emulator import EmulatorCore
from retro_core_harness.core.scripted import ScriptedCore
from retro_core_harness.driver.driver import ExecutionDriver
from retro_core_harness.harness.outcome import TestOutcome
from retro_core_harness.runner.sentinel import CycleCountBudget, SentinelBudget, SentinelRunner
from retro_core_harness.trace.comparator import TraceComparator, TraceReplayRunner
from retro_core_harness.trace.golden import load_golden_trace
from retro_core_harness.video.frame import FrameBuffer
from retro_core_harness.video.image import (
    LOSSLESS_EXTENSIONS, ImageComparator, decode_reference_name, load_reference_image,
)


# @intent:responsibility 指定サイクル数だけ実行し、最後に描画が完了したフレームを返します。
def capture_screenshot(core: EmulatorCore, cycles: int, config: Optional[HarnessConfig] = None) -> FrameBuffer:
    driver = ExecutionDriver(core, config)
    driver.run_cycles(cycles)
    return driver.oracle.capture()


# @intent:responsibility 全テストケースの共通インターフェース。
class HarnessCase(ABC):
    def __init__(self, name: str):
        self.name = name

    # @intent:post-condition pass / fail はTestOutcomeとして返し、ケースに致命的な問題は例外として送出します。
    @abstractmethod
    def execute(self, factory: CoreFactory, config: HarnessConfig) -> TestOutcome:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


# @intent:responsibility ゴールデントレースとの命令単位の照合を行います。
class GoldenTraceCase(HarnessCase):
    def __init__(self, name: str, rom: str, log: str, start_pc: Optional[int] = None,
                 start_cycle: Optional[int] = None, start_status: Optional[int] = None):
        super().__init__(name)
        self.rom = rom
        self.log = log
        self.start_pc = start_pc
        self.start_cycle = start_cycle
        self.start_status = start_status

    def execute(self, factory: CoreFactory, config: HarnessConfig) -> TestOutcome:
        # ファイルの読み込みは実行開始前に済ませる
        records = load_golden_trace(self.log)
        core = factory(self.rom, config)
        if self.start_pc is not None:
            try:
                core.set_entry_point(self.start_pc, self.start_cycle, self.start_status)
            except NotImplementedError as e:
                raise ConfigError(f"{self.name}: core cannot start at start_pc 0x{self.start_pc:04X}: {e}") from e
        return _replay(self.name, core, records, config)


# @intent:responsibility ゴールデントレースを自分自身から生成した参照コアで再生し、ログの整合性を確認します。
class TraceSelfCheckCase(HarnessCase):
    def __init__(self, name: str, log: str):
        super().__init__(name)
        self.log = log

    def execute(self, factory: Optional[CoreFactory], config: HarnessConfig) -> TestOutcome:
        records = load_golden_trace(self.log)
        if not records:
            return TestOutcome.failed(self.name, f"{self.log} contains no records")
        return _replay(self.name, ScriptedCore.from_records(records), records, config)


def _replay(name: str, core: EmulatorCore, records, config: HarnessConfig) -> TestOutcome:
    driver = ExecutionDriver(core, config)
    runner = TraceReplayRunner(driver, TraceComparator(config.strict_cycles), config.debug)
    verified = runner.run(records)
    return TestOutcome.passed(name, f"{verified} records matched")


# @intent:responsibility PCが成功／失敗センチネルアドレスに到達するまで実行します。
class SentinelCase(HarnessCase):
    def __init__(self, name: str, rom: str, budget: SentinelBudget):
        super().__init__(name)
        self.rom = rom
        self.budget = budget

    def execute(self, factory: CoreFactory, config: HarnessConfig) -> TestOutcome:
        core = factory(self.rom, config)
        return SentinelRunner(ExecutionDriver(core, config), config).run(self.name, self.budget)


# @intent:responsibility サイクル予算分実行した後、結果バイトを検査します。
class MemoryResultCase(HarnessCase):
    def __init__(self, name: str, rom: str, budget: CycleCountBudget):
        super().__init__(name)
        self.rom = rom
        self.budget = budget

    def execute(self, factory: CoreFactory, config: HarnessConfig) -> TestOutcome:
        core = factory(self.rom, config)
        return SentinelRunner(ExecutionDriver(core, config), config).run(self.name, self.budget)


# @intent:responsibility 参照画像のサイクル数だけ実行し、描画完了フレームと完全一致比較します。
class ScreenshotCase(HarnessCase):
    def __init__(self, name: str, reference: str, rom: str):
        super().__init__(name)
        self.reference = reference
        self.rom = rom

    def execute(self, factory: CoreFactory, config: HarnessConfig) -> TestOutcome:
        reference = load_reference_image(self.reference)
        core = factory(self.rom, config)
        captured = capture_screenshot(core, reference.cycles, config)
        ImageComparator().verify(reference.frame, captured)
        return TestOutcome.passed(self.name)


# @intent:responsibility 参照画像ディレクトリを列挙し、命名規約に合うファイルのみをケース化します。
# @intent:rationale 規約に合わないファイル（README など）はエラーにせず読み飛ばし、同じディレクトリに共存できるようにします。
def discover_screenshot_cases(directory: Union[str, Path], rom_directory: Union[str, Path],
                              rom_extension: str = ".nes") -> List[ScreenshotCase]:
    directory = Path(directory)
    if not directory.is_dir():
        return []
    cases = []
    for path in sorted(directory.iterdir()):
        if not path.is_file() or path.suffix.lower() not in LOSSLESS_EXTENSIONS:
            continue
        name = decode_reference_name(path)
        if name is None:
            continue
        rom = Path(rom_directory) / f"{name.rom_base}{rom_extension}"
        cases.append(ScreenshotCase(str(path), str(path), str(rom)))
    return cases
