# retro_core_harness/harness/report.py
"""
コンソールへの結果出力。色付けは見た目のみで、出力内容の契約には含まれません。
"""
from typing import Optional, TextIO

from rich.console import Console
from rich.markup import escape

from retro_core_harness.harness.outcome import OutcomeStatus, SuiteResult, TestOutcome

_STYLES = {
    OutcomeStatus.PASS: ("passed", "green"),
    OutcomeStatus.FAIL: ("failed", "red"),
    OutcomeStatus.ERROR: ("error", "yellow"),
}


# @intent:responsibility 1テストケースにつきちょうど1行の結果を出力します。
class ConsoleReporter:
    """
    出力は rich の Console を通して行います。color が偽の場合は装飾なしのテキストになり、
    1行が端末幅で折り返されることはありません。stream が None の場合は標準出力です。
    """
    def __init__(self, color: bool = False, stream: Optional[TextIO] = None):
        self.color = color
        self.console = Console(
            file=stream,
            color_system="standard" if color else None,
            force_terminal=color,
            no_color=not color,
            highlight=False,
            emoji=False,
            soft_wrap=True,
        )

    # @intent:responsibility 結果1件分のrichマークアップ文字列を返します。名前とメッセージはエスケープされます。
    def format(self, outcome: TestOutcome) -> str:
        word, style = _STYLES[outcome.status]
        line = f"{escape(outcome.name)} [{style}]{word}[/{style}]"
        if outcome.status is OutcomeStatus.PASS or not outcome.message:
            return line
        return f"{line}: {escape(outcome.message)}"

    def report(self, outcome: TestOutcome) -> None:
        self.console.print(self.format(outcome))

    def summary(self, result: SuiteResult) -> None:
        self.console.print(escape(result.summary()))
