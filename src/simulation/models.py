"""
抽選シミュレーター - データモデル

設定・抽選結果・統計、およびワーカーとのメッセージ形式を定義する。
メッセージは to_dict() で辞書に変換してキュー経由で受け渡す。
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from src.common import RNG_KINDS, get_game_config
from src.simulation.errors import ConfigurationError


@dataclass(frozen=True)
class RangeSpec:
    """数字の選択範囲（min〜max から count 個を非重複で選ぶ）"""

    min: int
    max: int
    count: int = 1

    @property
    def size(self) -> int:
        """範囲に含まれる数字の個数"""
        return self.max - self.min + 1

    def validate(self, label: str = "range") -> None:
        """
        範囲指定を検証する。

        Raises:
            ConfigurationError: min > max、count < 1、または count が範囲を超える場合
        """
        if self.min > self.max:
            raise ConfigurationError(f"{label}: min ({self.min}) が max ({self.max}) を超えています")
        if self.count < 1:
            raise ConfigurationError(f"{label}: count は1以上が必要です (指定: {self.count})")
        if self.count > self.size:
            raise ConfigurationError(
                f"{label}: {self.min}〜{self.max} の {self.size} 個から "
                f"{self.count} 個の非重複数字は選べません"
            )

    def to_dict(self) -> dict[str, int]:
        return {"min": self.min, "max": self.max, "count": self.count}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RangeSpec":
        return cls(
            min=int(data["min"]),
            max=int(data["max"]),
            count=int(data.get("count", 1)),
        )


@dataclass(frozen=True)
class SimulationConfig:
    """1回のシミュレーション実行の設定"""

    iterations: int
    main_range: RangeSpec
    bonus_range: RangeSpec
    seed: Optional[int] = None
    rng: str = "stdlib"

    def validate(self) -> None:
        """
        Raises:
            ConfigurationError: 試行回数が0以下、または範囲指定が不正な場合
        """
        if isinstance(self.iterations, bool) or not isinstance(self.iterations, int) or self.iterations <= 0:
            raise ConfigurationError(f"試行回数は1以上の整数が必要です (指定: {self.iterations!r})")
        self.main_range.validate("main_range")
        self.bonus_range.validate("bonus_range")
        if self.rng not in RNG_KINDS:
            raise ConfigurationError(f"不正な乱数ソース: '{self.rng}' (有効: {', '.join(RNG_KINDS)})")

    @classmethod
    def for_game(
        cls,
        game_key: str,
        iterations: int,
        seed: Optional[int] = None,
        rng: str = "stdlib",
    ) -> "SimulationConfig":
        """GAME_CONFIG のプリセットから設定を作る"""
        config = get_game_config(game_key)
        return cls(
            iterations=iterations,
            main_range=RangeSpec.from_dict(config["main"]),
            bonus_range=RangeSpec.from_dict(config["bonus"]),
            seed=seed,
            rng=rng,
        )


@dataclass(frozen=True)
class Draw:
    """1試行分の抽選結果"""

    sequence_id: int
    """試行番号（1始まり）"""

    main_numbers: tuple[int, ...]
    """本数字（昇順・非重複）"""

    bonus_number: int
    timestamp: float
    checksum: int
    """sum(本数字) × ボーナス数字。表示用の簡易タグ"""

    def to_dict(self) -> dict[str, Any]:
        return {
            "sequence_id": self.sequence_id,
            "main_numbers": list(self.main_numbers),
            "bonus_number": self.bonus_number,
            "timestamp": self.timestamp,
            "checksum": self.checksum,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Draw":
        return cls(
            sequence_id=int(data["sequence_id"]),
            main_numbers=tuple(int(n) for n in data["main_numbers"]),
            bonus_number=int(data["bonus_number"]),
            timestamp=float(data["timestamp"]),
            checksum=int(data["checksum"]),
        )


@dataclass(frozen=True)
class RankedCombination:
    """頻度から導出した推奨組み合わせ"""

    rank: str
    main_numbers: tuple[int, ...]
    bonus_number: int
    frequency_score: int
    """0〜100 のヒューリスティックなスコア（確率ではない）"""

    def to_dict(self) -> dict[str, Any]:
        return {
            "rank": self.rank,
            "main_numbers": list(self.main_numbers),
            "bonus_number": self.bonus_number,
            "frequency_score": self.frequency_score,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RankedCombination":
        return cls(
            rank=str(data["rank"]),
            main_numbers=tuple(int(n) for n in data["main_numbers"]),
            bonus_number=int(data["bonus_number"]),
            frequency_score=int(data["frequency_score"]),
        )


@dataclass(frozen=True)
class SimulationStatistics:
    """シミュレーション完了時の集計結果"""

    total_simulations: int
    processing_time_ms: int
    most_frequent_main: tuple[int, ...]
    """最頻出の本数字（昇順）"""

    most_frequent_bonus: int
    average_sum: int
    """1試行あたりの本数字合計の平均（四捨五入）"""

    ranked_combinations: tuple[RankedCombination, ...]
    main_frequency: dict[int, int] = field(default_factory=dict)
    """{数字: 出現回数}（範囲内の全数字、出現0回を含む）"""

    bonus_frequency: dict[int, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_simulations": self.total_simulations,
            "processing_time_ms": self.processing_time_ms,
            "most_frequent_main": list(self.most_frequent_main),
            "most_frequent_bonus": self.most_frequent_bonus,
            "average_sum": self.average_sum,
            "ranked_combinations": [combo.to_dict() for combo in self.ranked_combinations],
            # キーを文字列化しておく（JSON互換）
            "main_frequency": {str(num): count for num, count in self.main_frequency.items()},
            "bonus_frequency": {str(num): count for num, count in self.bonus_frequency.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SimulationStatistics":
        return cls(
            total_simulations=int(data["total_simulations"]),
            processing_time_ms=int(data["processing_time_ms"]),
            most_frequent_main=tuple(int(n) for n in data["most_frequent_main"]),
            most_frequent_bonus=int(data["most_frequent_bonus"]),
            average_sum=int(data["average_sum"]),
            ranked_combinations=tuple(
                RankedCombination.from_dict(item) for item in data.get("ranked_combinations", [])
            ),
            main_frequency={int(num): int(count) for num, count in data.get("main_frequency", {}).items()},
            bonus_frequency={int(num): int(count) for num, count in data.get("bonus_frequency", {}).items()},
        )


# ==========================================
# メッセージ
# ==========================================


@dataclass(frozen=True)
class StartMessage:
    """呼び出し側 → エンジン: 実行開始"""

    config: SimulationConfig
    type: str = "start"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "iterations": self.config.iterations,
            "main_range": self.config.main_range.to_dict(),
            "bonus_range": self.config.bonus_range.to_dict(),
            "seed": self.config.seed,
            "rng": self.config.rng,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StartMessage":
        config = SimulationConfig(
            iterations=data["iterations"],
            main_range=RangeSpec.from_dict(data["main_range"]),
            bonus_range=RangeSpec.from_dict(data["bonus_range"]),
            seed=data.get("seed"),
            rng=str(data.get("rng", "stdlib")),
        )
        return cls(config=config)


@dataclass(frozen=True)
class ProgressMessage:
    """エンジン → 呼び出し側: 進捗（0.0〜1.0）"""

    completed_fraction: float
    type: str = "progress"
    terminal = False

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "completed_fraction": self.completed_fraction}


@dataclass(frozen=True)
class CompleteMessage:
    """エンジン → 呼び出し側: 正常終了（終端メッセージ）"""

    trailing_draws: tuple[Draw, ...]
    statistics: SimulationStatistics
    type: str = "complete"
    terminal = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "trailing_draws": [draw.to_dict() for draw in self.trailing_draws],
            "statistics": self.statistics.to_dict(),
        }


@dataclass(frozen=True)
class ErrorMessage:
    """エンジン → 呼び出し側: 異常終了（終端メッセージ）"""

    message: str
    type: str = "error"
    terminal = True

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "message": self.message}


SimulationMessage = Union[ProgressMessage, CompleteMessage, ErrorMessage]


def message_from_dict(data: dict[str, Any]) -> SimulationMessage:
    """
    キューから受け取った辞書をメッセージオブジェクトに戻す。

    Raises:
        ValueError: 不明なメッセージ種別
    """
    kind = data.get("type")
    if kind == "progress":
        return ProgressMessage(completed_fraction=float(data["completed_fraction"]))
    if kind == "complete":
        return CompleteMessage(
            trailing_draws=tuple(Draw.from_dict(item) for item in data["trailing_draws"]),
            statistics=SimulationStatistics.from_dict(data["statistics"]),
        )
    if kind == "error":
        return ErrorMessage(message=str(data.get("message", "Simulation failed")))
    raise ValueError(f"不明なメッセージ種別: {kind!r}")
