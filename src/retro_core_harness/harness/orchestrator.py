# retro_core_harness/harness/orchestrator.py
"""
テストオーケストレータ。

テストケースを順に実行し、各ケースで発生した例外を TestOutcome に変換して集計します。
1つのケースの致命的なエラーがスイート全体を中断することはありません。
"""
import logging
from typing import Iterable, List, Optional

from retro_core_harness.common.errors import ImageMismatchError, TraceMismatchError
from retro_core_harness.common.types import CoreFactory
from retro_core_harness.config.models import HarnessConfig
from retro_core_harness.harness.cases import HarnessCase
from retro_core_harness.harness.outcome import SuiteResult, TestOutcome
from retro_core_harness.harness.report import ConsoleReporter

logger = logging.getLogger(__name__)


# @intent:responsibility ケースの実行、例外の結果への変換、結果の出力と集計を行います。
class Orchestrator:
    def __init__(self, core_factory: Optional[CoreFactory], config: Optional[HarnessConfig] = None,
                 reporter: Optional[ConsoleReporter] = None):
        self._core_factory = core_factory
        self._config = config or HarnessConfig()
        self._reporter = reporter or ConsoleReporter(color=self._config.color)

    # @intent:responsibility 1ケースを実行し、ちょうど1つの結果を返します。
    # @intent:rationale 画像やトレースの不一致は開発中に起こり得る想定内の結果なので fail、それ以外の例外は error とします。
    def run_case(self, case: HarnessCase) -> TestOutcome:
        try:
            return case.execute(self._core_factory, self._config)
        except (TraceMismatchError, ImageMismatchError) as e:
            return TestOutcome.failed(case.name, str(e))
        except Exception as e:
            logger.debug("%s raised %s", case.name, type(e).__name__, exc_info=True)
            return TestOutcome.errored(case.name, f"{type(e).__name__}: {e}")

    def run_all(self, cases: Iterable[HarnessCase]) -> SuiteResult:
        outcomes: List[TestOutcome] = []
        for case in cases:
            outcome = self.run_case(case)
            self._reporter.report(outcome)
            outcomes.append(outcome)
        result = SuiteResult(tuple(outcomes))
        self._reporter.summary(result)
        return result
