# retro_core_harness/trace/comparator.py
"""
ゴールデントレース比較器と、ドライバと同期して比較を行う再生ランナー。
"""
import logging
from typing import List, Sequence

from retro_core_harness.common.errors import CycleMismatchError, TraceMismatchError
from retro_core_harness.core.snapshot import REGISTER_FIELDS, EmulatorSnapshot
from retro_core_harness.driver.driver import ExecutionDriver
from retro_core_harness.trace.golden import ExpectationRecord

logger = logging.getLogger(__name__)


# @intent:responsibility 期待値レコードと実際のスナップショットを比較します。
class TraceComparator:
    """
    一致条件はレジスタタプル全体 (PC, A, X, Y, P, SP) です。
    strict_cycles が真の場合は累計サイクル数も一致条件に含めますが、
    その不一致はレジスタの不一致とは区別して CycleMismatchError として報告します。
    """
    def __init__(self, strict_cycles: bool = True):
        self.strict_cycles = strict_cycles

    @staticmethod
    def mismatched_registers(expected: ExpectationRecord, actual: EmulatorSnapshot) -> List[str]:
        return [name for name in REGISTER_FIELDS if getattr(expected, name) != getattr(actual, name)]

    def compare(self, expected: ExpectationRecord, actual: EmulatorSnapshot) -> bool:
        if expected.registers() != actual.registers():
            return False
        if self.strict_cycles and expected.cycle != actual.cycle:
            return False
        return True

    # @intent:responsibility 不一致の場合に、どのフィールドが乖離したかを含む例外を送出します。
    def verify(self, expected: ExpectationRecord, actual: EmulatorSnapshot, index: int = 0) -> None:
        registers = self.mismatched_registers(expected, actual)
        if registers:
            raise TraceMismatchError(index, expected, actual, registers)
        if self.strict_cycles and expected.cycle != actual.cycle:
            raise CycleMismatchError(index, expected, actual, ["cycle"])


# @intent:responsibility ゴールデントレースを実行順に1レコードずつ検証します。
class TraceReplayRunner:
    """
    各レコードについて、命令を実行する前のコア状態と比較し、一致した場合のみ1ステップ進めます。
    比較器はドライバのステップ1回につきちょうど1回呼び出され、最初の不一致で直ちに停止します。
    """
    def __init__(self, driver: ExecutionDriver, comparator: TraceComparator, debug: bool = False):
        self._driver = driver
        self._comparator = comparator
        self._debug = debug

    # @intent:post-condition 全レコード一致時は検証したレコード数を返します。不一致時は TraceMismatchError。
    def run(self, records: Sequence[ExpectationRecord]) -> int:
        for index, expected in enumerate(records):
            actual = self._driver.core.snapshot()
            if self._debug:
                logger.debug("%X %s", actual.pc, actual.describe())
            self._comparator.verify(expected, actual, index)
            self._driver.step()
        return len(records)
