"""
抽選シミュレーター - シミュレーション エンジン

抽選生成 → 頻度集計 → 直近結果の保持 → 進捗通知 を試行回数分繰り返し、
完了時にランキングを算出して統計を返す。

start() / step() による段階実行にしているため、ワーカープロセスでも
呼び出し元スレッドでのフォールバック実行でも同じアルゴリズムが動く。
"""

import time
from collections import deque
from enum import Enum
from typing import Callable, Optional

from src.common import TRAILING_WINDOW_SIZE
from src.simulation.accumulator import FrequencyTable
from src.simulation.errors import ConfigurationError, ExecutionFailure, SimulationBusyError
from src.simulation.generator import generate_draw
from src.simulation.models import (
    CompleteMessage,
    Draw,
    ErrorMessage,
    ProgressMessage,
    SimulationConfig,
    SimulationMessage,
    SimulationStatistics,
)
from src.simulation.progress import ProgressReporter
from src.simulation.random_source import RandomSource, create_random_source
from src.simulation.ranking import rank, round_half_up


class SimulationState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class SimulationOrchestrator:
    """
    シミュレーション1回分の状態機械（IDLE → RUNNING → COMPLETED / FAILED）。

    使用例:
        >>> sim = SimulationOrchestrator()
        >>> result = sim.run(SimulationConfig.for_game("ESWERTE", 1000))
        >>> result.statistics.total_simulations
        1000
    """

    def __init__(
        self,
        random_source: Optional[RandomSource] = None,
        window_size: int = TRAILING_WINDOW_SIZE,
    ) -> None:
        """
        Args:
            random_source: 乱数ソース（省略時は設定の rng / seed から生成）
            window_size: 保持する直近の抽選結果の件数
        """
        self._injected_source = random_source
        self.window_size = window_size
        self.state = SimulationState.IDLE

        self.config: Optional[SimulationConfig] = None
        self.frequencies = FrequencyTable()
        self.trailing: deque[Draw] = deque(maxlen=window_size)
        self.completed = 0

        self._source: Optional[RandomSource] = None
        self._reporter: Optional[ProgressReporter] = None
        self._started_at = 0.0

    @property
    def finished(self) -> bool:
        return self.state in (SimulationState.COMPLETED, SimulationState.FAILED)

    def start(self, config: SimulationConfig) -> None:
        """
        実行を開始する（集計と直近結果をリセットし、開始時刻を記録する）。

        Raises:
            SimulationBusyError: すでに実行中の場合
            ConfigurationError: 設定が不正な場合（試行は1回も行わない）
        """
        if self.state is SimulationState.RUNNING:
            raise SimulationBusyError("シミュレーションはすでに実行中です")

        config.validate()
        source = self._injected_source or create_random_source(config.rng, config.seed)

        self.config = config
        self._source = source
        self._reporter = ProgressReporter(config.iterations)
        self.frequencies.reset()
        self.trailing.clear()
        self.completed = 0
        self._started_at = time.perf_counter()
        self.state = SimulationState.RUNNING

    def step(self, max_trials: int) -> list[SimulationMessage]:
        """
        最大 max_trials 試行を処理し、その間に発生したメッセージを返す。

        最後の試行を処理した呼び出しでは CompleteMessage が末尾に付く。
        途中で例外が発生した場合は ErrorMessage のみを返し FAILED に遷移する
        （部分的な統計は返さない）。
        """
        if self.state is not SimulationState.RUNNING:
            return []

        messages: list[SimulationMessage] = []
        try:
            end = min(self.completed + max_trials, self.config.iterations)
            while self.completed < end:
                sequence_id = self.completed + 1
                draw = generate_draw(
                    self.config.main_range,
                    self.config.bonus_range,
                    self._source,
                    sequence_id=sequence_id,
                )
                self.frequencies.fold(draw)
                self.trailing.append(draw)
                self.completed = sequence_id

                progress = self._reporter.check(self.completed)
                if progress is not None:
                    messages.append(progress)

            if self.completed >= self.config.iterations:
                messages.append(self._finish())
        except Exception as exc:
            self.state = SimulationState.FAILED
            return [ErrorMessage(message=_describe(exc))]

        return messages

    def _finish(self) -> CompleteMessage:
        """ランキングを算出し、統計と直近結果をまとめる"""
        config = self.config
        elapsed_ms = round_half_up((time.perf_counter() - self._started_at) * 1000)

        ranking = rank(
            self.frequencies.main,
            self.frequencies.bonus,
            config.iterations,
            config.main_range,
            config.bonus_range,
        )

        statistics = SimulationStatistics(
            total_simulations=config.iterations,
            processing_time_ms=elapsed_ms,
            most_frequent_main=ranking.most_frequent_main,
            most_frequent_bonus=ranking.most_frequent_bonus,
            average_sum=round_half_up(self.frequencies.total_main_sum / config.iterations),
            ranked_combinations=ranking.ranked_combinations,
            main_frequency=self.frequencies.main_distribution(config.main_range.min, config.main_range.max),
            bonus_frequency=self.frequencies.bonus_distribution(config.bonus_range.min, config.bonus_range.max),
        )

        self.state = SimulationState.COMPLETED
        return CompleteMessage(trailing_draws=tuple(self.trailing), statistics=statistics)

    def run(
        self,
        config: SimulationConfig,
        progress_callback: Optional[Callable[[float], None]] = None,
    ) -> CompleteMessage:
        """
        呼び出し元で最後まで同期実行する。

        Args:
            config: 実行設定
            progress_callback: 進捗通知関数 fn(completed_fraction)

        Returns:
            CompleteMessage

        Raises:
            ConfigurationError: 設定が不正な場合
            ExecutionFailure: 実行中に失敗した場合
        """
        self.start(config)
        # 進捗の通知間隔ごとに区切って実行し、区間が終わるたびに通知する
        while not self.finished:
            for message in self.step(self._reporter.interval):
                if isinstance(message, ProgressMessage):
                    if progress_callback:
                        progress_callback(message.completed_fraction)
                elif isinstance(message, ErrorMessage):
                    raise ExecutionFailure(message.message)
                else:
                    return message
        raise ExecutionFailure("シミュレーションが完了しませんでした")


def _describe(exc: BaseException) -> str:
    """エラーメッセージ用の説明文"""
    if isinstance(exc, ConfigurationError):
        return f"設定エラー: {exc}"
    text = str(exc) or exc.__class__.__name__
    return f"シミュレーション失敗: {text}"
