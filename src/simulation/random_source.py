"""
抽選シミュレーター - 乱数ソース

抽選ロジックから乱数生成を切り離し、シード指定で再現可能にする。
暗号学的な安全性は持たない。
"""

import random
from typing import Optional, Protocol

import numpy as np

from src.simulation.errors import ConfigurationError


class RandomSource(Protocol):
    """low〜high（両端含む）の一様な整数を返す乱数ソース"""

    def next_in_range(self, low: int, high: int) -> int:
        ...


class StdlibRandomSource:
    """random.Random をラップした乱数ソース（既定）"""

    def __init__(self, seed: Optional[int] = None) -> None:
        self._random = random.Random(seed)

    def next_in_range(self, low: int, high: int) -> int:
        return self._random.randint(low, high)


class NumpyRandomSource:
    """numpy.random.Generator をラップした乱数ソース"""

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng = np.random.default_rng(seed)

    def next_in_range(self, low: int, high: int) -> int:
        # integers() の high は排他なので +1
        return int(self._rng.integers(low, high + 1))


_SOURCES = {
    "stdlib": StdlibRandomSource,
    "numpy": NumpyRandomSource,
}


def create_random_source(kind: str = "stdlib", seed: Optional[int] = None) -> RandomSource:
    """
    種別名から乱数ソースを生成する。

    Args:
        kind: "stdlib" または "numpy"
        seed: 乱数シード（None=非決定的）

    Raises:
        ConfigurationError: 不明な種別
    """
    factory = _SOURCES.get(kind)
    if factory is None:
        raise ConfigurationError(f"不正な乱数ソース: '{kind}' (有効: {', '.join(_SOURCES.keys())})")
    return factory(seed)
