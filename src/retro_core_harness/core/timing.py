# retro_core_harness/core/timing.py
"""
決定的なクロックモデル。

実際の描画や音声合成は行わず、画像ユニット・音声ユニットのクロック進行だけを再現します。
ScriptedCore と組み合わせ、実コアを用いずにドライバや割り込みタイミングを検証するために使用します。
"""
from typing import Optional, Tuple

from retro_core_harness.common.types import Rgba
from retro_core_harness.core.emulator import AudioUnit, PictureUnit
from retro_core_harness.video.frame import FrameBuffer

TICKS_PER_SCANLINE = 341
SCANLINES_PER_FRAME = 262
BLANKING_SCANLINE = 241


# @intent:responsibility 走査線単位で画像クロックを数え、ブランキング突入時にNMIとフレーム完了を通知します。
class ScanlineTimingUnit(PictureUnit):
    """
    1走査線 341 tick、1フレーム 262 走査線のタイミングモデル。

    走査線 241 に入った時点をブランキング期間の開始とし、nmi_enabled が真なら nmi を、
    常に drawn を返します。描画内容は fill 色による塗りつぶしで、フレーム番号の下位8bitを
    左上ピクセルの赤チャンネルに書き込み、フレーム同士を区別できるようにします。
    """
    def __init__(self, fill: Rgba = (0, 0, 0, 255), nmi_enabled: bool = True):
        self.fill = fill
        self.nmi_enabled = nmi_enabled
        self.scanline = 0
        self.dot = 0
        self.total_ticks = 0
        self.frames = 0

    def run(self, ticks: int, screen: FrameBuffer) -> Tuple[bool, bool]:
        self.total_ticks += ticks
        self.dot += ticks
        nmi = False
        drawn = False
        while self.dot >= TICKS_PER_SCANLINE:
            self.dot -= TICKS_PER_SCANLINE
            self.scanline += 1
            if self.scanline == BLANKING_SCANLINE:
                self._render(screen)
                drawn = True
                nmi = nmi or self.nmi_enabled
            elif self.scanline == SCANLINES_PER_FRAME:
                self.scanline = 0
        return nmi, drawn

    def _render(self, screen: FrameBuffer) -> None:
        self.frames += 1
        screen.fill(self.fill)
        r, g, b, a = self.fill
        screen.set_rgba(0, 0, (self.frames & 0xFF, g, b, a))


# @intent:responsibility 音声クロックの累計のみを保持する音声ユニット。
class ClockOnlyAudioUnit(AudioUnit):
    def __init__(self):
        self.elapsed = 0.0
        self.calls = 0
        self.cycles_per_sample: Optional[float] = None

    def run(self, cycles: float, cycles_per_sample: float) -> None:
        self.elapsed += cycles
        self.calls += 1
        self.cycles_per_sample = cycles_per_sample
