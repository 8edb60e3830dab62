"""
抽選シミュレーター - 頻度集計モジュール

試行ごとに本数字・ボーナス数字の出現回数と本数字合計を加算する。
"""

from collections import Counter
from dataclasses import dataclass, field

from src.simulation.models import Draw


@dataclass
class FrequencyTable:
    """1回の実行中に更新され続ける頻度表"""

    main: Counter = field(default_factory=Counter)
    """{本数字: 出現回数}"""

    bonus: Counter = field(default_factory=Counter)
    """{ボーナス数字: 出現回数}"""

    total_main_sum: int = 0
    """各試行の本数字合計の累計"""

    trials: int = 0
    """集計済みの試行数"""

    def fold(self, draw: Draw) -> "FrequencyTable":
        """
        1試行分の結果を頻度表に加算する（その場で更新し、自身を返す）。

        各試行はちょうど1回ずつ加算されなければならない。
        """
        self.main.update(draw.main_numbers)
        self.bonus[draw.bonus_number] += 1
        self.total_main_sum += sum(draw.main_numbers)
        self.trials += 1
        return self

    def reset(self) -> None:
        self.main.clear()
        self.bonus.clear()
        self.total_main_sum = 0
        self.trials = 0

    def main_distribution(self, low: int, high: int) -> dict[int, int]:
        """low〜high の全数字を含む本数字の出現回数（出現0回も含む）"""
        return {num: self.main.get(num, 0) for num in range(low, high + 1)}

    def bonus_distribution(self, low: int, high: int) -> dict[int, int]:
        return {num: self.bonus.get(num, 0) for num in range(low, high + 1)}
