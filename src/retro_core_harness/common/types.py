"""
共通の型定義を提供するモジュール。
ハーネス全体で使用される汎用的な型エイリアスなどを定義します。
"""
from typing import Callable, NamedTuple, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from retro_core_harness.config.models import HarnessConfig
    from retro_core_harness.core.emulator import EmulatorCore

# @intent:data_structure 1ピクセル分の (R, G, B, A) 値。各チャンネルは 0-255。
Rgba = Tuple[int, int, int, int]

# @intent:data_structure ROMパスとハーネス設定から新しいエミュレータコアを生成するファクトリ。
# テストケースごとに独立したコアを生成するため、呼び出しのたびに新しいインスタンスを返す必要があります。
CoreFactory = Callable[[str, "HarnessConfig"], "EmulatorCore"]


# @intent:data_structure 参照画像ファイル名から復元されるメタデータ。
class ReferenceName(NamedTuple):
    rom_base: str
    cycles: int
