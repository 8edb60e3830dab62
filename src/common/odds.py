"""
抽選シミュレーター - 当選確率計算モジュール

組み合わせ数から1口あたりの当選確率を求める。

    本数字: C(31, 6) = 736,281
    ボーナス: C(12, 1) = 12
    合計: 736,281 × 12 = 8,835,372
"""

import math


def combination(n: int, r: int) -> int:
    """組み合わせ数 C(n, r) を返す（r > n の場合は0）"""
    if r < 0 or r > n:
        return 0
    return math.comb(n, r)


def _pool_size(spec) -> int:
    return spec.max - spec.min + 1


def calculate_total_odds(main_spec, bonus_spec) -> int:
    """
    本数字とボーナス数字を合わせた全組み合わせ数を計算する。

    Args:
        main_spec: 本数字の RangeSpec
        bonus_spec: ボーナス数字の RangeSpec

    Returns:
        全組み合わせ数
    """
    main_total = combination(_pool_size(main_spec), main_spec.count)
    bonus_total = combination(_pool_size(bonus_spec), bonus_spec.count)
    return main_total * bonus_total


def calculate_probability(main_spec, bonus_spec) -> float:
    """1口あたりの当選確率（%）を返す"""
    total = calculate_total_odds(main_spec, bonus_spec)
    if total == 0:
        return 0.0
    return (1 / total) * 100


def format_odds(odds: int) -> str:
    return f"{odds:,}"


def format_probability(probability: float) -> str:
    return f"{probability:.7f}%"
