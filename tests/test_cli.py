# tests/test_cli.py
"""
retro_core_harness.cliモジュールの単体テスト。
引数の検証と、各サブコマンドの終了コードを検証します。
"""
import pytest
from unittest.mock import patch

from retro_core_harness.cli import USAGE_ERROR, main
from retro_core_harness.core.scripted import ScriptedCore
from retro_core_harness.core.snapshot import EmulatorSnapshot
from retro_core_harness.core.timing import ScanlineTimingUnit
from retro_core_harness.trace.golden import FIELD_COLUMN
from retro_core_harness.video.image import load_reference_image

# @intent:test_suite コマンドラインの引数検証と終了コードの検証。

GOLDEN = "\n".join(prefix.ljust(FIELD_COLUMN) + fields for prefix, fields in [
    ("C000  4C F5 C5  JMP $C5F5", "A:00 X:00 Y:00 P:24 SP:FD CYC:7"),
    ("C5F5  A2 00     LDX #$00", "A:00 X:00 Y:00 P:24 SP:FD CYC:10"),
]) + "\n"

SUITE_YAML = """
core_factory: "tests.cores:make_core"
sentinel_tests:
  - name: apu_test_1
    rom: roms/pass.nes
    pass_address: "0x815A"
    fail_address: "0x8165"
"""


def make_core(rom, config):
    if rom.endswith("pass.nes"):
        return ScriptedCore([EmulatorSnapshot(pc=0x8000), EmulatorSnapshot(pc=0x815A, cycle=3)])
    return ScriptedCore(
        [EmulatorSnapshot(pc=0x8000), EmulatorSnapshot(pc=0x8000, cycle=30000)],
        picture=ScanlineTimingUnit(fill=(10, 20, 30, 255)),
    )


class TestScreenshotCommand:
    """
    screenshotサブコマンドの引数検証。
    """
    @pytest.fixture
    def rom(self, tmp_path):
        path = tmp_path / "roms" / "smb.nes"
        path.parent.mkdir()
        path.write_bytes(b"NES\x1a")
        return path

    # @intent:test_case_missing_args 引数が不足している場合は診断を表示して終了コード2を返すことを検証します。
    @pytest.mark.parametrize("argv", [["screenshot"], ["screenshot", "smb.nes"]])
    def test_missing_arguments(self, argv, capsys):
        assert main(argv) == USAGE_ERROR
        assert "Give a .nes file and a number of cycles to run for" in capsys.readouterr().out

    # @intent:test_case_bad_cycles 整数として解釈できないサイクル数を拒否することを検証します。
    def test_cycles_not_integer(self, capsys):
        assert main(["screenshot", "smb.nes", "12k"]) == USAGE_ERROR
        assert "Could not parse cycles as an integer '12k'" in capsys.readouterr().out

    # @intent:test_case_non_positive 0以下のサイクル数を拒否することを検証します。
    @pytest.mark.parametrize("cycles", ["0", "-5"])
    def test_cycles_not_positive(self, cycles, capsys):
        assert main(["screenshot", "smb.nes", cycles]) == USAGE_ERROR
        assert "Give a positive number of cycles" in capsys.readouterr().out

    def test_core_required(self, capsys):
        assert main(["screenshot", "smb.nes", "100"]) == USAGE_ERROR
        assert "--core" in capsys.readouterr().out

    # @intent:test_case_save 指定サイクル数だけ実行し、<rom>-<cycles>.png として保存することを検証します。
    def test_saves_screenshot(self, rom, tmp_path):
        with patch("retro_core_harness.cli.resolve_core_factory", return_value=make_core) as resolve:
            code = main(["screenshot", str(rom), "30000", "--core", "tests.cores:make_core",
                         "--output", str(tmp_path)])
        assert code == 0
        resolve.assert_called_once_with("tests.cores:make_core")
        reference = load_reference_image(tmp_path / "smb-30000.png")
        assert reference.frame.get_rgba(0, 0) == (1, 20, 30, 255)

    # @intent:test_case_missing_rom 存在しないROMパスはコアファクトリを呼ばずに診断を表示して終了コード2を返すことを検証します。
    def test_missing_rom(self, tmp_path, capsys):
        with patch("retro_core_harness.cli.resolve_core_factory") as resolve:
            assert main(["screenshot", str(tmp_path / "smb.nes"), "100", "--core", "x:y"]) == USAGE_ERROR
        resolve.assert_not_called()
        assert "ROM file does not exist" in capsys.readouterr().out

    # @intent:test_case_core_error コアの生成に失敗した場合は例外で異常終了せず終了コード1を返すことを検証します。
    @pytest.mark.parametrize("error", [ValueError("not an iNES file"), FileNotFoundError("mapper.dat")])
    def test_core_failure(self, rom, error, capsys):
        def broken(path, config):
            raise error

        with patch("retro_core_harness.cli.resolve_core_factory", return_value=broken):
            assert main(["screenshot", str(rom), "10", "--core", "x:y"]) == 1
        out = capsys.readouterr().out
        assert out.startswith(f"Could not create a core for '{rom}'")
        assert type(error).__name__ in out


class TestRunCommand:
    """
    runサブコマンドの検証。
    """
    def test_missing_suite(self, tmp_path, capsys):
        assert main(["run"]) == USAGE_ERROR
        assert main(["run", str(tmp_path / "none.yaml")]) == USAGE_ERROR
        out = capsys.readouterr().out
        assert "Give a suite file to run" in out
        assert "Suite file does not exist" in out

    # @intent:test_case_run スイートを実行し、全ケース成功時に終了コード0を返すことを検証します。
    def test_runs_suite(self, tmp_path, capsys):
        suite = tmp_path / "suite.yaml"
        suite.write_text(SUITE_YAML, encoding="utf-8")
        with patch("retro_core_harness.config.builder.resolve_core_factory", return_value=make_core) as resolve:
            assert main(["run", str(suite)]) == 0
        resolve.assert_called_once_with("tests.cores:make_core")
        lines = capsys.readouterr().out.splitlines()
        assert lines[0].startswith("apu_test_1 passed")
        assert lines[-1] == "1 passed, 0 failed, 0 errors"

    # @intent:test_case_core_override --core指定がスイートのcore_factoryより優先されることを検証します。
    def test_core_override(self, tmp_path):
        suite = tmp_path / "suite.yaml"
        suite.write_text(SUITE_YAML, encoding="utf-8")
        with patch("retro_core_harness.config.builder.resolve_core_factory", return_value=make_core) as resolve:
            main(["run", str(suite), "--core", "other.cores:make"])
        resolve.assert_called_once_with("other.cores:make")

    def test_invalid_suite(self, tmp_path, capsys):
        suite = tmp_path / "suite.yaml"
        suite.write_text("sentinel_tests: 3\n", encoding="utf-8")
        assert main(["run", str(suite)]) == 1
        assert "must be a list" in capsys.readouterr().out


class TestCheckTraceCommand:
    """
    check-traceサブコマンドの検証。
    """
    def test_missing_log(self, capsys):
        assert main(["check-trace"]) == USAGE_ERROR
        assert "Give a golden trace file to check" in capsys.readouterr().out

    # @intent:test_case_self_check 正しい形式のゴールデントレースが自己照合に成功することを検証します。
    def test_valid_log(self, tmp_path):
        log = tmp_path / "nestest.log"
        log.write_text(GOLDEN, encoding="utf-8")
        assert main(["check-trace", str(log)]) == 0

    # @intent:test_case_malformed 不正な行を含むゴールデントレースが行番号付きのエラーとして報告されることを検証します。
    def test_malformed_log(self, tmp_path, capsys):
        log = tmp_path / "nestest.log"
        log.write_text(GOLDEN + "C5F7  86 00     STX $00\n", encoding="utf-8")
        assert main(["check-trace", str(log)]) == 1
        assert "line 3" in capsys.readouterr().out


def test_no_command(capsys):
    assert main([]) == USAGE_ERROR
    assert "usage:" in capsys.readouterr().out


# @intent:test_case_unknown_option 未知のオプションでもSystemExitを送出せず終了コード2を返すことを検証します。
def test_unknown_option(capsys):
    assert main(["run", "--no-such-option"]) == USAGE_ERROR
    assert "unrecognized arguments" in capsys.readouterr().err


def test_help_returns_zero(capsys):
    assert main(["--help"]) == 0
    assert "usage:" in capsys.readouterr().out
