# retro_core_harness/runner/sentinel.py
"""
センチネル終了ランナー。

テストROMは成功・失敗を「特定のアドレスに到達すること」または「特定のメモリに結果を
書き込むこと」で表現します。このモジュールはドライバを繰り返し呼び出し、いずれかの
終了条件で停止して TestOutcome を生成します。
"""
import logging
from dataclasses import dataclass
from typing import Optional, Union

from retro_core_harness.common.errors import UnexpectedTerminationError
from retro_core_harness.config.models import HarnessConfig
from retro_core_harness.driver.driver import ExecutionDriver
from retro_core_harness.harness.outcome import TestOutcome

logger = logging.getLogger(__name__)


# @intent:data_structure アドレス到達による終了条件。
@dataclass(frozen=True)
class SentinelBudget:
    pass_address: int
    fail_address: int
    max_steps: Optional[int] = None  # 未指定時は HarnessConfig.safety_step_ceiling


# @intent:data_structure 経過サイクル数による終了条件と、終了後に読む結果バイト。
@dataclass(frozen=True)
class CycleCountBudget:
    max_cycles: int
    result_address: int
    success_value: int = 1


# 1回のランで有効な終了条件はどちらか一方のみ
CycleBudget = Union[SentinelBudget, CycleCountBudget]


# @intent:responsibility 終了条件に到達するまでドライバを駆動し、ちょうど1つの結果を返します。
class SentinelRunner:
    def __init__(self, driver: ExecutionDriver, config: Optional[HarnessConfig] = None):
        self._driver = driver
        self._config = config or HarnessConfig()

    def run(self, name: str, budget: CycleBudget) -> TestOutcome:
        if isinstance(budget, SentinelBudget):
            return self.run_until(name, budget.pass_address, budget.fail_address, budget.max_steps)
        if isinstance(budget, CycleCountBudget):
            return self.run_for_cycles(name, budget.max_cycles, budget.result_address, budget.success_value)
        raise TypeError(f"Unsupported budget type: {type(budget).__name__}")

    # @intent:responsibility PCが passAddress / failAddress のいずれかに一致するまで実行します。
    # @intent:post-condition どちらにも到達せず安全ステップ上限に達した場合は UnexpectedTerminationError。
    def run_until(self, name: str, pass_address: int, fail_address: int,
                  max_steps: Optional[int] = None) -> TestOutcome:
        if pass_address == fail_address:
            raise ValueError(f"Pass and fail addresses must differ: 0x{pass_address:04X}")
        ceiling = max_steps if max_steps is not None else self._config.safety_step_ceiling
        core = self._driver.core

        steps = 0
        while True:
            pc = core.snapshot().pc
            if pc == pass_address:
                return TestOutcome.passed(name, f"reached 0x{pc:04X} after {steps} steps")
            if pc == fail_address:
                return TestOutcome.failed(name, f"reached fail address 0x{pc:04X} after {steps} steps")
            if steps >= ceiling:
                raise UnexpectedTerminationError(pc, steps)
            self._driver.step()
            steps += 1

    # @intent:responsibility サイクル予算を使い切った後、結果バイトを読み出して成否を判定します。
    def run_for_cycles(self, name: str, max_cycles: int, result_address: int,
                       success_value: int = 1) -> TestOutcome:
        self._driver.run_cycles(max_cycles)
        result = self._driver.core.read_memory(result_address)
        if self._config.debug:
            logger.debug("%s: result byte at 0x%04X is 0x%02X", name, result_address, result)
        if result == success_value:
            return TestOutcome.passed(name)
        return TestOutcome.failed(
            name, f"result byte at 0x{result_address:04X} was 0x{result:02X}, expected 0x{success_value:02X}"
        )
