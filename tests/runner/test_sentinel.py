# tests/runner/test_sentinel.py
"""
retro_core_harness.runner.sentinelモジュールの単体テスト。
"""
import pytest

from retro_core_harness.common.errors import UnexpectedTerminationError
from retro_core_harness.config.models import HarnessConfig
from retro_core_harness.core.scripted import ScriptedCore
from retro_core_harness.core.snapshot import EmulatorSnapshot
from retro_core_harness.driver.driver import ExecutionDriver
from retro_core_harness.harness.outcome import OutcomeStatus
from retro_core_harness.runner.sentinel import CycleCountBudget, SentinelBudget, SentinelRunner

# @intent:test_suite 終了アドレスおよびサイクル予算による終了判定の検証。

PASS_ADDRESS = 0x815A
FAIL_ADDRESS = 0x8165


def path_to(*pcs, cycles_per_step=3):
    return ScriptedCore([EmulatorSnapshot(pc=pc, cycle=i * cycles_per_step) for i, pc in enumerate(pcs)])


def runner_for(core, config=None):
    return SentinelRunner(ExecutionDriver(core, config), config)


class TestSentinelBudget:
    """
    アドレス到達による終了条件の単体テスト。
    """
    # @intent:test_case_pass 成功アドレスに到達すると成功結果を返すことを検証します。
    def test_reaches_pass_address(self):
        core = path_to(0x8000, 0x8003, 0x8150, PASS_ADDRESS, 0x9000)
        outcome = runner_for(core).run("apu test 1", SentinelBudget(PASS_ADDRESS, FAIL_ADDRESS))
        assert outcome.status is OutcomeStatus.PASS
        assert outcome.name == "apu test 1"
        assert "after 3 steps" in outcome.message
        assert core.snapshot().pc == PASS_ADDRESS

    # @intent:test_case_fail 失敗アドレスに到達すると失敗結果を返すことを検証します。
    def test_reaches_fail_address(self):
        core = path_to(0x8000, FAIL_ADDRESS, PASS_ADDRESS)
        outcome = runner_for(core).run("apu test 2", SentinelBudget(PASS_ADDRESS, FAIL_ADDRESS))
        assert outcome.status is OutcomeStatus.FAIL
        assert "0x8165" in outcome.message

    # @intent:test_case_initial_pc 実行前のPCが既に終了アドレスであれば1ステップも実行しないことを検証します。
    def test_checks_before_first_step(self):
        core = path_to(PASS_ADDRESS, 0x8000)
        outcome = runner_for(core).run_until("t", PASS_ADDRESS, FAIL_ADDRESS)
        assert outcome.ok
        assert core.steps_taken == 0

    # @intent:test_case_ceiling どちらにも到達しない場合は安全ステップ上限でUnexpectedTerminationErrorになることを検証します。
    def test_neither_address_reached(self):
        core = path_to(0x8000, 0x8003, 0x8006)
        runner = runner_for(core, HarnessConfig(safety_step_ceiling=10))
        with pytest.raises(UnexpectedTerminationError) as excinfo:
            runner.run("t", SentinelBudget(PASS_ADDRESS, FAIL_ADDRESS))
        assert excinfo.value.pc == 0x8006
        assert excinfo.value.steps == 10

    # @intent:test_case_max_steps 個別に指定したステップ上限が設定値より優先されることを検証します。
    def test_budget_max_steps(self):
        core = path_to(0x8000, 0x8003)
        with pytest.raises(UnexpectedTerminationError, match="after 2 steps"):
            runner_for(core).run("t", SentinelBudget(PASS_ADDRESS, FAIL_ADDRESS, max_steps=2))

    def test_same_addresses_rejected(self):
        with pytest.raises(ValueError):
            runner_for(path_to(0x8000)).run_until("t", 0x8000, 0x8000)


class TestCycleCountBudget:
    """
    サイクル予算と結果バイトによる終了条件の単体テスト。
    """
    @pytest.fixture
    def core(self):
        return path_to(*[0x8000 + i for i in range(100)])

    # @intent:test_case_result_pass 予算消化後に結果バイトが成功値であれば成功となることを検証します。
    def test_success_value(self, core):
        core.bus.write(0x00F8, 0x01)
        runner = SentinelRunner(ExecutionDriver(core))
        outcome = runner.run("branch_timing 1", CycleCountBudget(150, 0x00F8))
        assert outcome.status is OutcomeStatus.PASS
        assert core.steps_taken == 50

    # @intent:test_case_result_fail 結果バイトが成功値以外であれば失敗となり、値がメッセージに含まれることを検証します。
    def test_failure_value(self, core):
        core.bus.write(0x00F8, 0x03)
        outcome = SentinelRunner(ExecutionDriver(core)).run("t", CycleCountBudget(150, 0x00F8))
        assert outcome.status is OutcomeStatus.FAIL
        assert outcome.message == "result byte at 0x00F8 was 0x03, expected 0x01"

    def test_unknown_budget(self, core):
        with pytest.raises(TypeError):
            SentinelRunner(ExecutionDriver(core)).run("t", object())
