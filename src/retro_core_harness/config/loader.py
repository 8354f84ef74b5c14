import yaml
from typing import Any, Dict, List, Optional

from retro_core_harness.common.errors import ConfigError
from .models import (
    GoldenTraceSpec, HarnessConfig, MemoryTestSpec, ScreenshotSpec, SentinelTestSpec, SuiteConfig,
)


# @intent:responsibility YAMLのスイート定義を読み込み、SuiteConfig に変換します。
class SuiteConfigLoader:
    def load_from_file(self, path: str) -> SuiteConfig:
        with open(path, 'r', encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: top level of a suite file must be a mapping")
        return self._parse_config(data)

    def _parse_config(self, data: Dict[str, Any]) -> SuiteConfig:
        harness = self._parse_harness(data.get("harness") or {})

        golden_traces = []
        for entry in self._entries(data, "golden_traces"):
            golden_traces.append(GoldenTraceSpec(
                name=self._require(entry, "name"),
                rom=self._require(entry, "rom"),
                log=self._require(entry, "log"),
                start_pc=self._parse_optional_int(entry.get("start_pc")),
                start_cycle=self._parse_optional_int(entry.get("start_cycle")),
                start_status=self._parse_optional_int(entry.get("start_status")),
            ))

        sentinel_tests = []
        for entry in self._entries(data, "sentinel_tests"):
            sentinel_tests.append(SentinelTestSpec(
                name=self._require(entry, "name"),
                rom=self._require(entry, "rom"),
                pass_address=self._parse_int(self._require(entry, "pass_address")),
                fail_address=self._parse_int(self._require(entry, "fail_address")),
            ))

        memory_tests = []
        for entry in self._entries(data, "memory_tests"):
            memory_tests.append(MemoryTestSpec(
                name=self._require(entry, "name"),
                rom=self._require(entry, "rom"),
                cycles=self._parse_int(self._require(entry, "cycles")),
                result_address=self._parse_int(self._require(entry, "result_address")),
                success_value=self._parse_int(entry.get("success_value", 1)),
            ))

        screenshots = None
        screenshot_data = data.get("screenshots")
        if screenshot_data is not None:
            screenshots = ScreenshotSpec(
                directory=screenshot_data.get("directory", "images"),
                rom_directory=screenshot_data.get("rom_directory", "roms"),
                rom_extension=screenshot_data.get("rom_extension", ".nes"),
            )

        return SuiteConfig(
            core_factory=data.get("core_factory", ""),
            harness=harness,
            golden_traces=golden_traces,
            sentinel_tests=sentinel_tests,
            memory_tests=memory_tests,
            screenshots=screenshots,
        )

    def _parse_harness(self, data: Dict[str, Any]) -> HarnessConfig:
        defaults = HarnessConfig()
        ceiling = self._parse_int(data.get("safety_step_ceiling", defaults.safety_step_ceiling))
        if ceiling <= 0:
            raise ConfigError(f"safety_step_ceiling must be positive: {ceiling}")
        return HarnessConfig(
            debug=bool(data.get("debug", defaults.debug)),
            strict_cycles=bool(data.get("strict_cycles", defaults.strict_cycles)),
            safety_step_ceiling=ceiling,
            screen_width=self._parse_int(data.get("screen_width", defaults.screen_width)),
            screen_height=self._parse_int(data.get("screen_height", defaults.screen_height)),
            color=bool(data.get("color", defaults.color)),
        )

    def _entries(self, data: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
        entries = data.get(key) or []
        if not isinstance(entries, list):
            raise ConfigError(f"'{key}' must be a list")
        return entries

    def _require(self, entry: Dict[str, Any], key: str) -> Any:
        if key not in entry:
            raise ConfigError(f"Missing required key '{key}' in {entry}")
        return entry[key]

    def _parse_optional_int(self, value: Any) -> Optional[int]:
        if value is None:
            return None
        return self._parse_int(value)

    def _parse_int(self, value: Any) -> int:
        if isinstance(value, bool):
            raise ConfigError(f"Invalid integer format: {value}")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            try:
                if value.lower().startswith("0x"):
                    return int(value, 16)
                return int(value)
            except ValueError:
                pass
        raise ConfigError(f"Invalid integer format: {value}")
