# retro_core_harness/harness/outcome.py
"""
テスト結果の不変データ構造。
"""
from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class OutcomeStatus(Enum):
    PASS = "pass"
    FAIL = "fail"
    ERROR = "error"


# @intent:responsibility 1テストケースにつき1度だけ生成される結果を不変に保持します。
@dataclass(frozen=True)
class TestOutcome:
    __test__ = False  # pytestによる収集対象外

    name: str
    status: OutcomeStatus
    message: str = ""

    @classmethod
    def passed(cls, name: str, message: str = "") -> "TestOutcome":
        return cls(name, OutcomeStatus.PASS, message)

    @classmethod
    def failed(cls, name: str, message: str) -> "TestOutcome":
        return cls(name, OutcomeStatus.FAIL, message)

    @classmethod
    def errored(cls, name: str, message: str) -> "TestOutcome":
        return cls(name, OutcomeStatus.ERROR, message)

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.PASS


# @intent:responsibility スイート全体の結果を集計します。
@dataclass(frozen=True)
class SuiteResult:
    outcomes: Tuple[TestOutcome, ...]

    def count(self, status: OutcomeStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status is status)

    @property
    def ok(self) -> bool:
        return all(outcome.ok for outcome in self.outcomes)

    # @intent:responsibility 全ケース実行後にのみ参照される終了ステータス。失敗・エラーが1件でもあれば1。
    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    def summary(self) -> str:
        return (f"{self.count(OutcomeStatus.PASS)} passed, {self.count(OutcomeStatus.FAIL)} failed, "
                f"{self.count(OutcomeStatus.ERROR)} errors")
