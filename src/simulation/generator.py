"""
抽選シミュレーター - 抽選生成モジュール

本数字（非重複）とボーナス数字を1試行分生成する。
"""

import time
from typing import Optional

from src.simulation.errors import ConfigurationError
from src.simulation.models import Draw, RangeSpec
from src.simulation.random_source import RandomSource, StdlibRandomSource


def sample_unique(spec: RangeSpec, source: RandomSource) -> list[int]:
    """
    spec.min〜spec.max から spec.count 個の非重複の数字を昇順で返す。

    一様乱数を set に追加し、個数が揃うまで繰り返す（棄却サンプリング）。
    count が範囲の大きさを超えるとループが終わらないため、先に検証する。

    Raises:
        ConfigurationError: count が範囲内の数字の個数を超える場合
    """
    if spec.count > spec.size:
        raise ConfigurationError(
            f"{spec.min}〜{spec.max} の {spec.size} 個から {spec.count} 個の非重複数字は選べません"
        )

    picked: set[int] = set()
    while len(picked) < spec.count:
        picked.add(source.next_in_range(spec.min, spec.max))
    return sorted(picked)


def calculate_checksum(main_numbers: tuple[int, ...], bonus_number: int) -> int:
    """表示用の簡易チェックサム（本数字の合計 × ボーナス数字）"""
    return sum(main_numbers) * bonus_number


def generate_draw(
    main_spec: RangeSpec,
    bonus_spec: RangeSpec,
    source: RandomSource,
    sequence_id: int = 1,
) -> Draw:
    """
    1試行分の抽選結果を生成する。

    Args:
        main_spec: 本数字の範囲
        bonus_spec: ボーナス数字の範囲（count は参照しない）
        source: 乱数ソース
        sequence_id: 試行番号（1始まり）

    Returns:
        Draw
    """
    main_numbers = tuple(sample_unique(main_spec, source))
    bonus_number = source.next_in_range(bonus_spec.min, bonus_spec.max)

    return Draw(
        sequence_id=sequence_id,
        main_numbers=main_numbers,
        bonus_number=bonus_number,
        timestamp=time.time(),
        checksum=calculate_checksum(main_numbers, bonus_number),
    )


def generate_random_numbers(
    count: int,
    low: int,
    high: int,
    source: Optional[RandomSource] = None,
) -> list[int]:
    """クイックピック用: low〜high から count 個の非重複数字を昇順で返す"""
    if source is None:
        source = StdlibRandomSource()
    return sample_unique(RangeSpec(min=low, max=high, count=count), source)
