"""
抽選シミュレーター - ランキング算出モジュール

最終的な頻度表から最頻出の数字と上位3件の推奨組み合わせを導出する。

スコアは1位のスコアに固定の重み（100% / 85% / 70%）を掛けたヒューリスティックであり、
統計的に較正された確率ではない。
"""

import math
from collections import Counter
from dataclasses import dataclass

from src.common import RANK_LABELS, RANK_WEIGHTS
from src.simulation.models import RangeSpec, RankedCombination


@dataclass(frozen=True)
class RankingResult:
    """ランキング算出結果"""

    most_frequent_main: tuple[int, ...]
    most_frequent_bonus: int
    ranked_combinations: tuple[RankedCombination, ...]


def round_half_up(value: float) -> int:
    """0.5 を切り上げる四捨五入（round() の偶数丸めを避ける）"""
    return int(math.floor(value + 0.5))


def sort_by_frequency(counter: Counter) -> list[int]:
    """出現回数の降順、同数の場合は数字の昇順で並べる"""
    return [num for num, _ in sorted(counter.items(), key=lambda x: (-x[1], x[0]))]


def _wrap(value: int, spec: RangeSpec) -> int:
    """範囲を超えた値を min 側に折り返す"""
    return spec.min + (value - spec.min) % spec.size


def _bonus_candidates(sorted_bonus: list[int], spec: RangeSpec, slots: int) -> list[int]:
    """
    上位 slots 件のボーナス数字を返す。

    出現したボーナス数字が足りない場合は、最頻出の値に順位分を加えた値
    （最大値を超えたら折り返し）で補う。
    """
    top = sorted_bonus[0] if sorted_bonus else spec.min
    candidates = []
    for i in range(slots):
        if i < len(sorted_bonus):
            candidates.append(sorted_bonus[i])
        else:
            candidates.append(_wrap(top + i, spec))
    return candidates


def rank(
    main_freq: Counter,
    bonus_freq: Counter,
    total_iterations: int,
    main_spec: RangeSpec,
    bonus_spec: RangeSpec,
) -> RankingResult:
    """
    頻度表から最頻出の数字と推奨組み合わせを算出する。

    Args:
        main_freq: {本数字: 出現回数}
        bonus_freq: {ボーナス数字: 出現回数}
        total_iterations: 総試行数
        main_spec: 本数字の範囲（count 個を最頻出として選ぶ）
        bonus_spec: ボーナス数字の範囲（補完時の折り返しに使用）

    Returns:
        RankingResult。3件の組み合わせはすべて同じ本数字を持ち、
        ボーナス数字とスコアだけが異なる。
    """
    sorted_main = sort_by_frequency(main_freq)
    top_main = sorted_main[: main_spec.count]
    most_frequent_main = tuple(sorted(top_main))

    sorted_bonus = sort_by_frequency(bonus_freq)
    most_frequent_bonus = sorted_bonus[0] if sorted_bonus else bonus_spec.min

    # 1位のスコアは最頻出の本数字の出現率（%）、2位・3位は1位のスコアに重みを掛ける
    if total_iterations > 0 and top_main:
        rank1_score = round_half_up(main_freq[top_main[0]] * 100 / total_iterations)
    else:
        rank1_score = 0

    bonus_numbers = _bonus_candidates(sorted_bonus, bonus_spec, len(RANK_WEIGHTS))

    ranked_combinations = tuple(
        RankedCombination(
            rank=label,
            main_numbers=most_frequent_main,
            bonus_number=bonus,
            frequency_score=round_half_up(rank1_score * weight / 100),
        )
        for label, weight, bonus in zip(RANK_LABELS, RANK_WEIGHTS, bonus_numbers)
    )

    return RankingResult(
        most_frequent_main=most_frequent_main,
        most_frequent_bonus=most_frequent_bonus,
        ranked_combinations=ranked_combinations,
    )
