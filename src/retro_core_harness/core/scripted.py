# retro_core_harness/core/scripted.py
"""
決定的な参照コア。

あらかじめ与えられたスナップショット列を1命令ずつ再生するエミュレータコアです。
実コアを接続せずに、ドライバ・比較器・ランナーの振る舞いを検証するために使用します。
"""
from typing import Iterable, List, Optional, Sequence

from retro_core_harness.core.emulator import AudioUnit, EmulatorCore, PictureUnit
from retro_core_harness.core.snapshot import EmulatorSnapshot
from retro_core_harness.core.timing import ClockOnlyAudioUnit, ScanlineTimingUnit
from retro_core_harness.trace.golden import ExpectationRecord
from retro_core_harness.transport.bus import MemoryBus


# @intent:responsibility スナップショット列を順に再生するコアを提供します。
class ScriptedCore(EmulatorCore):
    """
    step() のたびに次のスナップショットへ進むコア。

    列の終端に達した後は最後の状態に留まり（HALT相当）、以降の step() は0サイクルを返します。
    メモリ読み出しは MemoryBus に委譲し、NMI要求は回数だけを記録します。
    """
    def __init__(self, states: Sequence[EmulatorSnapshot], bus: Optional[MemoryBus] = None,
                 picture: Optional[PictureUnit] = None, audio: Optional[AudioUnit] = None):
        if not states:
            raise ValueError("ScriptedCore requires at least one state.")
        self._states: List[EmulatorSnapshot] = list(states)
        self._index = 0
        self._bus = bus or MemoryBus.with_flat_ram()
        self._picture = picture or ScanlineTimingUnit()
        self._audio = audio or ClockOnlyAudioUnit()
        self.nmi_requests = 0

    # @intent:responsibility ゴールデントレースのレコード列そのものを再生するコアを生成します。
    @classmethod
    def from_records(cls, records: Iterable[ExpectationRecord], **kwargs) -> "ScriptedCore":
        return cls([record.to_snapshot() for record in records], **kwargs)

    @property
    def picture(self) -> PictureUnit:
        return self._picture

    @property
    def audio(self) -> AudioUnit:
        return self._audio

    @property
    def bus(self) -> MemoryBus:
        return self._bus

    @property
    def halted(self) -> bool:
        return self._index >= len(self._states) - 1

    @property
    def steps_taken(self) -> int:
        return self._index

    def step(self) -> int:
        if self.halted:
            return 0
        before = self._states[self._index].cycle
        self._index += 1
        return self._states[self._index].cycle - before

    def snapshot(self) -> EmulatorSnapshot:
        return self._states[self._index]

    def read_memory(self, address: int) -> int:
        return self._bus.read(address)

    def raise_nmi(self) -> None:
        self.nmi_requests += 1

    # @intent:pre-condition 最初の step() より前に呼び出す必要があります。
    def set_entry_point(self, pc: int, cycle: Optional[int] = None, status: Optional[int] = None) -> None:
        if self._index != 0:
            raise RuntimeError("Entry point can only be set before the first step.")
        changes = {"pc": pc}
        if cycle is not None:
            changes["cycle"] = cycle
        if status is not None:
            changes["p"] = status
        self._states[0] = self._states[0].replace(**changes)
