# retro_core_harness/trace/golden.py
"""
ゴールデントレースのパーサ。

1行1レコードのテキストログ（nestest.log 形式）を、型付きの期待値レコード列に変換します。

    C000  4C F5 C5  JMP $C5F5                       A:00 X:00 Y:00 P:24 SP:FD PPU:  0, 21 CYC:7

先頭4文字が16進のプログラムカウンタ、48桁目以降が `LABEL:HH` 形式のレジスタ値と
10進の累計サイクル数 `CYC:n` を含むフィールドブロックです。
"""
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from retro_core_harness.common.errors import MalformedRecordError
from retro_core_harness.core.snapshot import REGISTER_FIELDS, EmulatorSnapshot

PC_WIDTH = 4
FIELD_COLUMN = 48

# ラベル -> レコードのフィールド名
REGISTER_LABELS: Dict[str, str] = {"A": "a", "X": "x", "Y": "y", "P": "p", "SP": "sp"}
CYCLE_LABEL = "CYC"

_HEX_BYTE = re.compile(r"[0-9A-Fa-f]{1,2}")
_HEX_PC = re.compile(r"[0-9A-Fa-f]{4}")
_DECIMAL = re.compile(r"[0-9]+")
_FIELD_BLOCK_START = re.compile(r"(?<!\S)A:[0-9A-Fa-f]")


# @intent:responsibility ゴールデントレース1行分の期待状態を不変に保持します。
@dataclass(frozen=True)
class ExpectationRecord:
    pc: int
    a: int
    x: int
    y: int
    p: int
    sp: int
    cycle: int
    line_number: int = 0

    def registers(self) -> Tuple[int, ...]:
        return tuple(getattr(self, name) for name in REGISTER_FIELDS)

    # @intent:responsibility この期待値と完全に一致するスナップショットを生成します。
    def to_snapshot(self) -> EmulatorSnapshot:
        return EmulatorSnapshot(pc=self.pc, a=self.a, x=self.x, y=self.y, p=self.p, sp=self.sp,
                                cycle=self.cycle)

    def describe(self) -> str:
        return self.to_snapshot().describe()


# @intent:responsibility ゴールデントレースのテキストをレコード列へ変換します。
class GoldenTraceParser:
    """
    行順をそのまま実行順として保持し、並べ替えや重複除去は行いません。
    空行（ファイル末尾の改行など）は読み飛ばし、それ以外の不正な行は
    行番号付きの MalformedRecordError として報告します。
    """
    def __init__(self, field_column: int = FIELD_COLUMN):
        self.field_column = field_column

    def parse(self, text: str) -> List[ExpectationRecord]:
        records: List[ExpectationRecord] = []
        for line_number, line in enumerate(text.splitlines(), 1):
            if not line.strip():
                continue
            records.append(self.parse_line(line, line_number))
        return records

    def parse_file(self, path: Union[str, Path]) -> List[ExpectationRecord]:
        with open(path, "r", encoding="utf-8") as f:
            return self.parse(f.read())

    def parse_line(self, line: str, line_number: int = 0) -> ExpectationRecord:
        line = line.rstrip("\r\n")
        pc_field = line[:PC_WIDTH]
        if not _HEX_PC.fullmatch(pc_field):
            raise MalformedRecordError(line_number, line, f"could not parse pc from '{pc_field}'")
        pc = int(pc_field, 16)

        fields = self._collect_fields(self._field_block(line, line_number))

        values = {}
        for label, name in REGISTER_LABELS.items():
            raw = fields.get(label)
            if raw is None:
                raise MalformedRecordError(line_number, line, f"missing field {label}")
            if not _HEX_BYTE.fullmatch(raw):
                raise MalformedRecordError(line_number, line, f"could not parse hex value from {label}:{raw}")
            values[name] = int(raw, 16)

        raw_cycle = fields.get(CYCLE_LABEL)
        if raw_cycle is None:
            raise MalformedRecordError(line_number, line, f"missing field {CYCLE_LABEL}")
        if not _DECIMAL.fullmatch(raw_cycle):
            raise MalformedRecordError(line_number, line, f"could not parse cycle from {CYCLE_LABEL}:{raw_cycle}")

        return ExpectationRecord(pc=pc, cycle=int(raw_cycle, 10), line_number=line_number, **values)

    # @intent:responsibility フィールドブロック（レジスタ値が始まる位置以降）を切り出します。
    # @intent:rationale 逆アセンブル列の幅はログ生成元によって揺れるため、固定桁が "A:" で
    #                  始まらない場合は最初の "A:HH" トークンの位置を探します。
    def _field_block(self, line: str, line_number: int) -> str:
        block = line[self.field_column:]
        if block.lstrip().startswith("A:"):
            return block
        match = _FIELD_BLOCK_START.search(line, PC_WIDTH)
        if match is None:
            raise MalformedRecordError(line_number, line, "missing register field block")
        return line[match.start():]

    @staticmethod
    def _collect_fields(block: str) -> Dict[str, str]:
        tokens = block.split()
        fields: Dict[str, str] = {}
        wanted = set(REGISTER_LABELS) | {CYCLE_LABEL}
        for i, token in enumerate(tokens):
            label, sep, value = token.partition(":")
            if not sep or label not in wanted or label in fields:
                continue
            # "CYC:  7" のようにコロンの後に空白が入る形式
            if not value and i + 1 < len(tokens) and ":" not in tokens[i + 1]:
                value = tokens[i + 1]
            fields[label] = value
        return fields


# @intent:responsibility テキスト全体を解析するモジュールレベルの簡易関数。
def parse_golden_trace(text: str, field_column: Optional[int] = None) -> List[ExpectationRecord]:
    parser = GoldenTraceParser() if field_column is None else GoldenTraceParser(field_column)
    return parser.parse(text)


def load_golden_trace(path: Union[str, Path]) -> List[ExpectationRecord]:
    return GoldenTraceParser().parse_file(path)
