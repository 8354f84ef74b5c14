# retro_core_harness/common/errors.py
"""
ハーネス全体で使用する例外階層。

各例外はテストケース単位で致命的かどうかが決まっており、
オーケストレータはこれを TestOutcome（pass / fail / error）へ変換します。
"""
from typing import Optional, Sequence, Tuple, TYPE_CHECKING

from retro_core_harness.common.types import Rgba

if TYPE_CHECKING:
    from retro_core_harness.core.snapshot import EmulatorSnapshot
    from retro_core_harness.trace.golden import ExpectationRecord


# @intent:responsibility ハーネスが送出する全例外の基底クラス。
class HarnessError(Exception):
    pass


# @intent:responsibility エミュレータコアの命令ステップが失敗したことを示します。
# @intent:rationale 実行中のランに対して致命的。ドライバは再試行せず、呼び出し元へそのまま伝播させます。
class CoreExecutionError(HarnessError):
    pass


# @intent:responsibility ゴールデントレースの行が解析できなかったことを示します。
class MalformedRecordError(HarnessError):
    def __init__(self, line_number: int, line: str, reason: str):
        super().__init__(f"Malformed golden trace record on line {line_number}: {reason}: '{line}'")
        self.line_number = line_number
        self.line = line
        self.reason = reason


# @intent:responsibility センチネルアドレスに到達せず安全ステップ上限を超えたことを示します。
class UnexpectedTerminationError(HarnessError):
    def __init__(self, pc: int, steps: int, message: Optional[str] = None):
        super().__init__(message or f"Unexpected address 0x{pc:04X} after {steps} steps")
        self.pc = pc
        self.steps = steps


# @intent:responsibility ゴールデントレースと実際の状態が一致しなかったことを示します。
# @intent:rationale 診断のため、期待値と実際値のタプル全体および不一致フィールド名を保持します。
class TraceMismatchError(HarnessError):
    def __init__(self, index: int, expected: "ExpectationRecord", actual: "EmulatorSnapshot",
                 field_names: Sequence[str]):
        super().__init__(
            f"Error: PC 0x{actual.pc:X} Expected {expected.describe()} but had {actual.describe()} "
            f"(record {index}, mismatched: {', '.join(field_names)})"
        )
        self.index = index
        self.expected = expected
        self.actual = actual
        self.field_names = tuple(field_names)


# @intent:responsibility レジスタは一致したがサイクル数のみ異なることを示します（厳密モード時のみ）。
class CycleMismatchError(TraceMismatchError):
    pass


# @intent:responsibility 画像比較の不一致。ハードエラーではなく単なる fail として報告されます。
class ImageMismatchError(HarnessError):
    pass


class ImageDimensionMismatchError(ImageMismatchError):
    def __init__(self, expected_size: Tuple[int, int], actual_size: Tuple[int, int]):
        super().__init__(
            f"Image size mismatch: expected {expected_size[0]}x{expected_size[1]}, "
            f"got {actual_size[0]}x{actual_size[1]}"
        )
        self.expected_size = expected_size
        self.actual_size = actual_size


class ImagePixelMismatchError(ImageMismatchError):
    def __init__(self, x: int, y: int, expected: Rgba, actual: Rgba):
        super().__init__(f"Pixel mismatch at ({x}, {y}): expected {expected}, got {actual}")
        self.x = x
        self.y = y
        self.expected = expected
        self.actual = actual


# @intent:responsibility スイート設定・ハーネス設定が利用できない場合に送出されます。
class ConfigError(HarnessError):
    pass
