# retro_core_harness/video/image.py
"""
参照画像の読み込みと、キャプチャしたフレームとのピクセル完全一致比較。

参照画像のファイル名は `<romBase>-<cycles>.<ext>` の規約に従い、比較対象のROMと
そのROMを実行すべき正確なサイクル数を表します。
"""
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

from PIL import Image

from retro_core_harness.common.errors import ImageDimensionMismatchError, ImagePixelMismatchError
from retro_core_harness.common.types import ReferenceName
from retro_core_harness.video.frame import CHANNELS, FrameBuffer

# Pillowが可逆に読み書きできる拡張子
LOSSLESS_EXTENSIONS = (".png", ".bmp", ".gif", ".tif", ".tiff")

_REFERENCE_NAME = re.compile(r"^(?P<rom>.+)-(?P<cycles>\d+)\.(?P<ext>[^.]+)$")

PathLike = Union[str, Path]


# @intent:responsibility パスから romBase とサイクル数を取り出します。規約に合わない場合は None。
def decode_reference_name(path: PathLike) -> Optional[ReferenceName]:
    match = _REFERENCE_NAME.match(Path(path).name)
    if match is None:
        return None
    return ReferenceName(match.group("rom"), int(match.group("cycles")))


def reference_filename(rom_base: str, cycles: int, extension: str = ".png") -> str:
    return f"{rom_base}-{cycles}{extension}"


# @intent:data_structure デコード済みの参照画像と、ファイル名から復元したメタデータ。
@dataclass(frozen=True)
class ReferenceImage:
    rom_base: str
    cycles: int
    frame: FrameBuffer
    path: Optional[Path] = None


# @intent:pre-condition ファイル名が `<romBase>-<cycles>.<ext>` 規約に従っている必要があります。
def load_reference_image(path: PathLike) -> ReferenceImage:
    name = decode_reference_name(path)
    if name is None:
        raise ValueError(f"'{path}' does not follow the <rom>-<cycles>.<ext> naming convention")
    with Image.open(path) as image:
        frame = FrameBuffer.from_image(image)
    return ReferenceImage(name.rom_base, name.cycles, frame, Path(path))


# @intent:responsibility フレームをRGBAのPNGとして `<romBase>-<cycles>.png` に保存します。
def save_frame_png(frame: FrameBuffer, directory: PathLike, rom_base: str, cycles: int) -> Path:
    out = Path(directory) / reference_filename(rom_base, cycles)
    out.parent.mkdir(parents=True, exist_ok=True)
    frame.to_image().save(out, format="PNG")
    return out


# @intent:responsibility 2つのフレームを寸法・全4チャンネルの完全一致で比較します。
class ImageComparator:
    """
    寸法が異なる場合はピクセルデータを一切参照せずに不一致とします。
    許容誤差や知覚的距離は用いず、1チャンネルでも異なれば全体が不一致です。
    """
    def compare(self, reference: FrameBuffer, captured: FrameBuffer) -> bool:
        if (reference.width, reference.height) != (captured.width, captured.height):
            return False
        return reference.pixels == captured.pixels

    # @intent:responsibility 不一致の場合に、寸法または最初に異なるピクセルを示す例外を送出します。
    def verify(self, reference: FrameBuffer, captured: FrameBuffer) -> None:
        expected_size = (reference.width, reference.height)
        actual_size = (captured.width, captured.height)
        if expected_size != actual_size:
            raise ImageDimensionMismatchError(expected_size, actual_size)
        if reference.pixels == captured.pixels:
            return
        x, y = self.first_difference(reference, captured)
        raise ImagePixelMismatchError(x, y, reference.get_rgba(x, y), captured.get_rgba(x, y))

    @staticmethod
    def first_difference(reference: FrameBuffer, captured: FrameBuffer) -> Tuple[int, int]:
        for i, (left, right) in enumerate(zip(reference.pixels, captured.pixels)):
            if left != right:
                pixel = i // CHANNELS
                return pixel % reference.width, pixel // reference.width
        raise ValueError("Frames are identical")
