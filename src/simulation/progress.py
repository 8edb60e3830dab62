"""
抽選シミュレーター - 進捗通知モジュール

総試行数の約10%ごとに進捗を通知する。
"""

import math
from typing import Optional

from src.common import PROGRESS_STEPS
from src.simulation.models import ProgressMessage


class ProgressReporter:
    """
    ceil(total / steps) 試行ごとに1回だけ進捗を通知する。

    total が steps で割り切れない場合、最後の区間は短くなり、
    100% の通知が出ないこともある（完了は別メッセージで通知する）。

    使用例:
        >>> reporter = ProgressReporter(total=1000)
        >>> reporter.check(100)
        ProgressMessage(completed_fraction=0.1, type='progress')
        >>> reporter.check(101) is None
        True
    """

    def __init__(self, total: int, steps: int = PROGRESS_STEPS) -> None:
        if total <= 0:
            raise ValueError(f"total は1以上が必要です (指定: {total})")
        self.total = total
        self.interval = max(math.ceil(total / steps), 1)

    def is_due(self, completed: int) -> bool:
        """completed 試行目で通知すべきかどうか"""
        return completed > 0 and completed % self.interval == 0

    def check(self, completed: int) -> Optional[ProgressMessage]:
        """通知すべきなら ProgressMessage を、そうでなければ None を返す"""
        if not self.is_due(completed):
            return None
        return ProgressMessage(completed_fraction=completed / self.total)
