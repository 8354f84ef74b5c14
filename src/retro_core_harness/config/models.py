from dataclasses import dataclass, field
from typing import List, Optional


# @intent:responsibility ドライバとオーケストレータへ構築時に渡されるハーネス設定。
# @intent:rationale デバッグ出力などの切り替えをプロセス全体のグローバル変数ではなく、明示的な値として受け渡します。
@dataclass(frozen=True)
class HarnessConfig:
    debug: bool = False
    strict_cycles: bool = True  # ゴールデントレースのCYCを一致条件に含める
    safety_step_ceiling: int = 10_000_000  # センチネル待ちの最大ステップ数
    screen_width: int = 256
    screen_height: int = 240
    color: bool = False


@dataclass
class GoldenTraceSpec:
    name: str
    rom: str
    log: str
    start_pc: Optional[int] = None
    start_cycle: Optional[int] = None
    start_status: Optional[int] = None


@dataclass
class SentinelTestSpec:
    name: str
    rom: str
    pass_address: int
    fail_address: int


@dataclass
class MemoryTestSpec:
    name: str
    rom: str
    cycles: int
    result_address: int
    success_value: int = 1


@dataclass
class ScreenshotSpec:
    directory: str = "images"
    rom_directory: str = "roms"
    rom_extension: str = ".nes"


@dataclass
class SuiteConfig:
    core_factory: str = ""  # "package.module:callable"
    harness: HarnessConfig = field(default_factory=HarnessConfig)
    golden_traces: List[GoldenTraceSpec] = field(default_factory=list)
    sentinel_tests: List[SentinelTestSpec] = field(default_factory=list)
    memory_tests: List[MemoryTestSpec] = field(default_factory=list)
    screenshots: Optional[ScreenshotSpec] = None
