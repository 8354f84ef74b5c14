# retro_core_harness/video/frame.py
"""
フレームバッファと、描画完了フレームを保持するオラクル。

描画担当のコラボレータ（PictureUnit）は live バッファにのみ書き込み、
比較器は stable バッファのみを読み出します。drawn シグナルを受けたときに
live を stable へ丸ごとコピー（promote）することで、読み手は常に描画途中ではない
完全なフレームを観測します。
"""
from typing import Optional

from PIL import Image

from retro_core_harness.common.types import Rgba

CHANNELS = 4


# @intent:responsibility 幅×高さの4チャンネル(RGBA)ピクセルグリッドを保持します。
class FrameBuffer:
    """
    RGBAピクセルを行優先で保持するフレームバッファ。
    生成直後は全ピクセルが (0, 0, 0, 0) で初期化されています。
    """
    # @intent:pre-condition width, heightは正の整数である必要があります。
    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError(f"Frame dimensions must be positive: {width}x{height}")
        self.width = width
        self.height = height
        self.pixels = bytearray(width * height * CHANNELS)

    @property
    def size(self):
        return self.width, self.height

    def _index(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) out of bounds for {self.width}x{self.height} frame.")
        return (y * self.width + x) * CHANNELS

    def get_rgba(self, x: int, y: int) -> Rgba:
        i = self._index(x, y)
        r, g, b, a = self.pixels[i:i + CHANNELS]
        return r, g, b, a

    def set_rgba(self, x: int, y: int, rgba: Rgba) -> None:
        i = self._index(x, y)
        self.pixels[i:i + CHANNELS] = bytes(rgba)

    def fill(self, rgba: Rgba) -> None:
        self.pixels[:] = bytes(rgba) * (self.width * self.height)

    # @intent:responsibility 他のバッファの内容で全体を置き換えます（部分コピーは行いません）。
    # @intent:pre-condition 両バッファの寸法が一致している必要があります。
    def copy_from(self, other: "FrameBuffer") -> None:
        if other.size != self.size:
            raise ValueError(
                f"Cannot copy a {other.width}x{other.height} frame into a {self.width}x{self.height} frame."
            )
        self.pixels[:] = other.pixels

    def clone(self) -> "FrameBuffer":
        copy = FrameBuffer(self.width, self.height)
        copy.pixels[:] = self.pixels
        return copy

    # @intent:responsibility Pillowの画像をRGBAに変換してフレームバッファを生成します。
    @classmethod
    def from_image(cls, image: Image.Image) -> "FrameBuffer":
        rgba = image.convert("RGBA")
        frame = cls(rgba.width, rgba.height)
        frame.pixels[:] = rgba.tobytes()
        return frame

    def to_image(self) -> Image.Image:
        return Image.frombytes("RGBA", self.size, bytes(self.pixels))


# @intent:responsibility live / stable の2スロットを持つフレーム領域。
# @intent:rationale stableへの更新はpromote()による全体置換のみとし、部分的な書き込みを排除します。
class FrameArena:
    def __init__(self, width: int, height: int):
        self.live = FrameBuffer(width, height)
        self.stable = FrameBuffer(width, height)

    def promote(self) -> None:
        self.stable.copy_from(self.live)


# @intent:responsibility drawnシグナルに応じて完成フレームを確定し、任意の時点で取得可能にします。
class FrameBufferOracle:
    """
    ドライバから毎ステップ drawn シグナルを受け取り、シグナルが立ったときのみ
    live フレームを stable フレームへ昇格させます。

    capture() は最初のフレームが描画される前でも、ゼロ初期化済みの定義されたバッファを返します。
    """
    def __init__(self, width: int = 256, height: int = 240, arena: Optional[FrameArena] = None):
        self._arena = arena or FrameArena(width, height)
        self.frames_drawn = 0

    # @intent:responsibility PictureUnitが描画先として使用するliveバッファ。
    @property
    def live(self) -> FrameBuffer:
        return self._arena.live

    def observe(self, drawn: bool) -> None:
        if drawn:
            self._arena.promote()
            self.frames_drawn += 1

    # @intent:responsibility 現在のstableフレームのコピーを返します。
    # @intent:rationale 呼び出し側が保持したフレームが後続のpromoteで変化しないよう、コピーを返します。
    def capture(self) -> FrameBuffer:
        return self._arena.stable.clone()
