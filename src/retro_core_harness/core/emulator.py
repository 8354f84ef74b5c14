# retro_core_harness/core/emulator.py
"""
Core Layer (エミュレータコアの能力インターフェース)

ハーネスがエミュレータコアに要求する最小限の能力を定義します。
命令の実行、画素生成、音声生成はコア側の責務であり、ハーネスはここで定義された
インターフェース越しにのみコアを操作します。
"""
from abc import ABC, abstractmethod
from typing import Any, Optional, Tuple

from retro_core_harness.core.snapshot import EmulatorSnapshot
from retro_core_harness.video.frame import FrameBuffer


# @intent:responsibility 画像ユニット（描画コラボレータ）のクロック駆動インターフェース。
class PictureUnit(ABC):
    # @intent:responsibility 画像クロックを ticks 分進め、liveフレームへ描画します。
    # @intent:post-condition (nmi, drawn) を返します。nmi はブランキング期間への突入、
    #                        drawn は screen への1フレーム分の描画完了を示します。
    @abstractmethod
    def run(self, ticks: int, screen: FrameBuffer) -> Tuple[bool, bool]:
        pass


# @intent:responsibility 音声ユニットのクロック駆動インターフェース。
class AudioUnit(ABC):
    # @intent:responsibility 音声クロックを cycles 分進めます。
    # @intent:rationale ハーネスは生成されたサンプルを使用しませんが、割り込みタイミングを
    #                  CPUクロックと同期させるため、毎ステップ必ず呼び出されます。
    @abstractmethod
    def run(self, cycles: float, cycles_per_sample: float) -> Optional[Any]:
        pass


# @intent:responsibility ハーネスから見たエミュレータコアの狭い能力インターフェースを定義します。
class EmulatorCore(ABC):
    """
    全てのエミュレータコア（実機相当のコア、テスト用の決定的スタブ）が実装すべき基底クラス。

    テストケースごとに新しいインスタンスが生成され、複数のテストケース間で共有されることはありません。
    """
    # @intent:responsibility コアに接続された画像ユニットを返します。
    @property
    @abstractmethod
    def picture(self) -> PictureUnit:
        pass

    # @intent:responsibility コアに接続された音声ユニットを返します。
    @property
    @abstractmethod
    def audio(self) -> AudioUnit:
        pass

    # @intent:responsibility ちょうど1命令を実行し、その命令で消費したサイクル数を返します。
    # @intent:post-condition 実行後の snapshot().cycle は実行前以上でなければなりません。
    @abstractmethod
    def step(self) -> int:
        pass

    # @intent:responsibility 現在の命令境界における観測可能な状態を返します。
    @abstractmethod
    def snapshot(self) -> EmulatorSnapshot:
        pass

    # @intent:responsibility アドレス空間から1バイトを読み出します（副作用なし）。
    @abstractmethod
    def read_memory(self, address: int) -> int:
        pass

    # @intent:responsibility ノンマスカブル割り込みを発生させます。次のステップの前に処理される必要があります。
    @abstractmethod
    def raise_nmi(self) -> None:
        pass

    # @intent:responsibility 電源投入直後ではなく、指定したPC・累計サイクルから実行を開始させます。
    # @intent:rationale ゴールデントレース（nestest）はリセットベクタを経由せず $C000 から開始するため。
    #                  対応しないコアは NotImplementedError を送出し、ゴールデントレースのケースが ConfigError として報告します。
    def set_entry_point(self, pc: int, cycle: Optional[int] = None, status: Optional[int] = None) -> None:
        raise NotImplementedError(f"{type(self).__name__} does not support overriding the entry point")
