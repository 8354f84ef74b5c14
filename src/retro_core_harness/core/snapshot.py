# retro_core_harness/core/snapshot.py
"""
エミュレータ状態の不変スナップショット

このモジュールは、命令境界におけるCPUの観測可能な状態を記録した不変のデータ構造を定義します。
スナップショットはエミュレータコアのみが生成し、ハーネス側からは読み取り専用です。
"""
from dataclasses import dataclass, replace
from typing import Tuple

# @intent:data_structure レジスタ比較の対象となるフィールド名（比較順）。
REGISTER_FIELDS: Tuple[str, ...] = ("pc", "a", "x", "y", "p", "sp")


# @intent:responsibility ある命令境界におけるCPUレジスタと累計サイクル数を不変に記録します。
@dataclass(frozen=True)  # 不変データ構造
class EmulatorSnapshot:
    """
    命令境界での観測可能なCPU状態。

    pc はプログラムカウンタ、a/x/y はアキュムレータとインデックスレジスタ、
    p はステータスフラグ、sp はスタックポインタ（8bit、$0100 を加算しない値）、
    cycle は電源投入からの累計CPUサイクル数です。
    """
    pc: int = 0x0000
    a: int = 0x00
    x: int = 0x00
    y: int = 0x00
    p: int = 0x24  # Reserved bit と Interrupt Disable が立った状態
    sp: int = 0xFD
    cycle: int = 0

    # @intent:responsibility 比較用のレジスタタプル (PC, A, X, Y, P, SP) を返します。
    def registers(self) -> Tuple[int, ...]:
        return tuple(getattr(self, name) for name in REGISTER_FIELDS)

    # @intent:responsibility dataclasses.replaceのラッパー。
    def replace(self, **changes) -> "EmulatorSnapshot":
        return replace(self, **changes)

    def describe(self) -> str:
        return (f"A:0x{self.a:X} X:0x{self.x:X} Y:0x{self.y:X} SP:0x{self.sp:X} "
                f"P:0x{self.p:X} PC:0x{self.pc:X} Cycle:{self.cycle}")
