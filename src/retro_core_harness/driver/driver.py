# retro_core_harness/driver/driver.py
"""
実行ドライバ。

エミュレータコアを1命令ずつ進め、その命令で経過したCPUサイクル数から画像ユニット・
音声ユニットのクロック進行量を導出して毎ステップ受け渡します。画像ユニットが
ブランキング期間への突入を通知した場合は、次の命令より前にNMIを発生させます。
"""
import logging
from typing import NamedTuple, Optional

from retro_core_harness.common.errors import CoreExecutionError, UnexpectedTerminationError
from retro_core_harness.config.models import HarnessConfig
from retro_core_harness.core.emulator import EmulatorCore
from retro_core_harness.core.snapshot import EmulatorSnapshot
from retro_core_harness.video.frame import FrameBufferOracle

logger = logging.getLogger(__name__)

# 画像クロックはCPUクロックの3倍（固定比率、設定不可）
PICTURE_TICKS_PER_CPU_CYCLE = 3
# 音声ユニットはCPUサイクルの1/2を浮動小数点のクロック差分として受け取る
AUDIO_CYCLE_DIVISOR = 2.0
BASE_CYCLES_PER_SAMPLE = 100.0


# @intent:data_structure 1ステップの結果。
class StepResult(NamedTuple):
    cycles_elapsed: int
    interrupt_pending: bool
    frame_drawn: bool


# @intent:responsibility CPU・画像ユニット・音声ユニットをサイクル比率に従って同期駆動します。
class ExecutionDriver:
    """
    1回の step() が1つの不可分な作業単位です。ステップの途中で中断されることはありません。

    経過サイクルは「直前のステップ終了時点の累計サイクル」との差分として計算するため、
    NMI処理などステップ外でコアが加算したサイクルも次のステップの差分に含まれます。
    """
    def __init__(self, core: EmulatorCore, config: Optional[HarnessConfig] = None,
                 oracle: Optional[FrameBufferOracle] = None):
        self._core = core
        self._config = config or HarnessConfig()
        self._oracle = oracle or FrameBufferOracle(self._config.screen_width, self._config.screen_height)
        self._last_cycle = core.snapshot().cycle
        self.steps = 0
        self.total_cycles = 0
        self.nmi_count = 0

    @property
    def core(self) -> EmulatorCore:
        return self._core

    @property
    def oracle(self) -> FrameBufferOracle:
        return self._oracle

    # @intent:responsibility ドライバ構築後にコアの累計サイクルが外部から変更された場合に基準値を取り直します。
    def resync(self) -> None:
        self._last_cycle = self._core.snapshot().cycle

    # @intent:responsibility コアをちょうど1命令進め、派生クロックを各ユニットへ渡します。
    # @intent:post-condition コアの累計サイクルが減少した場合、または命令実行が失敗した場合は CoreExecutionError。
    def step(self) -> StepResult:
        before: EmulatorSnapshot = self._core.snapshot()
        try:
            self._core.step()
        except Exception as e:
            raise CoreExecutionError(f"Error at PC 0x{before.pc:X}: {e}") from e

        after = self._core.snapshot()
        cycles_elapsed = after.cycle - self._last_cycle
        if cycles_elapsed < 0:
            raise CoreExecutionError(
                f"Cycle counter went backwards at PC 0x{before.pc:X}: {self._last_cycle} -> {after.cycle}"
            )
        self._last_cycle = after.cycle
        self.steps += 1
        self.total_cycles += cycles_elapsed

        # 出力を使わない場合でも、割り込みタイミングのため両ユニットのクロックを進める
        self._core.audio.run(cycles_elapsed / AUDIO_CYCLE_DIVISOR, BASE_CYCLES_PER_SAMPLE)
        nmi, drawn = self._core.picture.run(cycles_elapsed * PICTURE_TICKS_PER_CPU_CYCLE, self._oracle.live)
        self._oracle.observe(drawn)

        if nmi:
            if self._config.debug:
                logger.debug("Cycle %d Do NMI", after.cycle)
            self._core.raise_nmi()
            self.nmi_count += 1

        if self._config.debug:
            logger.debug("%04X %s (+%d)", before.pc, after.describe(), cycles_elapsed)

        return StepResult(cycles_elapsed, nmi, drawn)

    # @intent:responsibility 累計経過サイクルが budget に達するまでステップを繰り返します。
    # @intent:rationale サイクルを消費しないコア（停止状態など）で無限ループにならないよう、安全ステップ上限を適用します。
    def run_cycles(self, budget: int) -> int:
        ceiling = self._config.safety_step_ceiling
        start_steps = self.steps
        while self.total_cycles < budget:
            if self.steps - start_steps >= ceiling:
                raise UnexpectedTerminationError(
                    self._core.snapshot().pc, self.steps - start_steps,
                    f"Cycle budget {budget} not reached after {ceiling} steps ({self.total_cycles} cycles elapsed)"
                )
            self.step()
        return self.total_cycles
