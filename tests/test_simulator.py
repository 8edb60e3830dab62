"""
テスト - シミュレーション エンジン
"""

import pytest

from src.common import TRAILING_WINDOW_SIZE
from src.simulation.accumulator import FrequencyTable
from src.simulation.engine import SimulationOrchestrator, SimulationState
from src.simulation.errors import ConfigurationError, ExecutionFailure, SimulationBusyError
from src.simulation.generator import (
    calculate_checksum,
    generate_draw,
    generate_random_numbers,
    sample_unique,
)
from src.simulation.models import (
    CompleteMessage,
    Draw,
    ErrorMessage,
    ProgressMessage,
    RangeSpec,
    SimulationConfig,
)
from src.simulation.progress import ProgressReporter
from src.simulation.random_source import (
    NumpyRandomSource,
    StdlibRandomSource,
    create_random_source,
)


MAIN = RangeSpec(min=1, max=31, count=6)
BONUS = RangeSpec(min=1, max=12, count=1)


class FixedSource:
    """決まった順番で値を返すテスト用の乱数ソース"""

    def __init__(self, values):
        self.values = list(values)
        self.calls = 0

    def next_in_range(self, low, high):
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


class FailingSource:
    """n回目の呼び出しで例外を送出する乱数ソース"""

    def __init__(self, fail_at):
        self.fail_at = fail_at
        self.calls = 0
        self._inner = StdlibRandomSource(seed=1)

    def next_in_range(self, low, high):
        self.calls += 1
        if self.calls >= self.fail_at:
            raise MemoryError("out of entropy")
        return self._inner.next_in_range(low, high)


# ==========================================
# 乱数ソースのテスト
# ==========================================


class TestRandomSource:
    """乱数ソースのテスト"""

    @pytest.mark.parametrize("kind", ["stdlib", "numpy"])
    def test_values_in_range(self, kind):
        """値が両端を含む範囲内であること"""
        source = create_random_source(kind, seed=3)
        values = [source.next_in_range(1, 12) for _ in range(2000)]
        assert min(values) == 1
        assert max(values) == 12

    @pytest.mark.parametrize("cls", [StdlibRandomSource, NumpyRandomSource])
    def test_seed_reproducible(self, cls):
        """同じシードで同じ系列になること"""
        a = cls(seed=42)
        b = cls(seed=42)
        assert [a.next_in_range(1, 31) for _ in range(50)] == [b.next_in_range(1, 31) for _ in range(50)]

    def test_numpy_returns_int(self):
        """numpy版もPythonのintを返すこと"""
        value = NumpyRandomSource(seed=0).next_in_range(1, 31)
        assert type(value) is int

    def test_invalid_kind(self):
        """不明な種別でConfigurationError"""
        with pytest.raises(ConfigurationError, match="不正な乱数ソース"):
            create_random_source("mersenne")


# ==========================================
# 抽選生成のテスト
# ==========================================


class TestDrawGenerator:
    """generate_draw() / sample_unique() のテスト"""

    @pytest.fixture
    def source(self):
        return StdlibRandomSource(seed=2024)

    def test_main_numbers_count(self, source):
        """本数字が指定個数であること"""
        for i in range(100):
            draw = generate_draw(MAIN, BONUS, source, sequence_id=i + 1)
            assert len(draw.main_numbers) == 6

    def test_no_duplicates(self, source):
        """本数字に重複がないこと"""
        for _ in range(200):
            draw = generate_draw(MAIN, BONUS, source)
            assert len(set(draw.main_numbers)) == len(draw.main_numbers)

    def test_numbers_in_range(self, source):
        """本数字・ボーナス数字が範囲内であること"""
        for _ in range(200):
            draw = generate_draw(MAIN, BONUS, source)
            assert all(1 <= n <= 31 for n in draw.main_numbers)
            assert 1 <= draw.bonus_number <= 12

    def test_sorted(self, source):
        """本数字が昇順であること"""
        for _ in range(100):
            draw = generate_draw(MAIN, BONUS, source)
            assert list(draw.main_numbers) == sorted(draw.main_numbers)

    def test_checksum(self):
        """チェックサムが 本数字の合計 × ボーナス数字 であること"""
        source = FixedSource([3, 1, 4, 1, 5, 9, 2, 6, 7])
        draw = generate_draw(MAIN, BONUS, source, sequence_id=7)
        # 重複した1は捨てられ、{1,2,3,4,5,9} が揃った後に 6 がボーナスになる
        assert draw.main_numbers == (1, 2, 3, 4, 5, 9)
        assert draw.bonus_number == 6
        assert draw.checksum == 24 * 6
        assert draw.sequence_id == 7
        assert calculate_checksum((1, 2, 3), 4) == 24

    def test_full_range(self, source):
        """範囲の大きさと同じ個数を選べること"""
        numbers = sample_unique(RangeSpec(min=1, max=5, count=5), source)
        assert numbers == [1, 2, 3, 4, 5]

    def test_too_many_uniques(self, source):
        """範囲より多い個数はループせずにConfigurationError"""
        with pytest.raises(ConfigurationError):
            sample_unique(RangeSpec(min=1, max=5, count=6), source)

    def test_custom_bonus_range(self, source):
        """ボーナス範囲の count に依存しないこと"""
        bonus = RangeSpec(min=10, max=10, count=1)
        draw = generate_draw(MAIN, bonus, source)
        assert draw.bonus_number == 10

    def test_quick_pick(self):
        """クイックピックが非重複・昇順・範囲内であること"""
        numbers = generate_random_numbers(6, 1, 31, StdlibRandomSource(seed=5))
        assert len(numbers) == 6
        assert numbers == sorted(set(numbers))
        assert all(1 <= n <= 31 for n in numbers)


# ==========================================
# 頻度集計のテスト
# ==========================================


class TestFrequencyTable:
    """FrequencyTable のテスト"""

    def _draw(self, main, bonus, seq=1):
        return Draw(
            sequence_id=seq,
            main_numbers=tuple(main),
            bonus_number=bonus,
            timestamp=0.0,
            checksum=calculate_checksum(tuple(main), bonus),
        )

    def test_fold_counts(self):
        """本数字・ボーナス数字・合計が加算されること"""
        table = FrequencyTable()
        table.fold(self._draw([1, 2, 3, 4, 5, 6], 7))
        table.fold(self._draw([1, 2, 3, 10, 11, 12], 7, seq=2))

        assert table.main[1] == 2
        assert table.main[10] == 1
        assert table.main[31] == 0
        assert table.bonus[7] == 2
        assert table.total_main_sum == 21 + 39
        assert table.trials == 2

    def test_totals_match_trials(self):
        """本数字の合計が 6 × N、ボーナスの合計が N であること"""
        source = StdlibRandomSource(seed=11)
        table = FrequencyTable()
        n = 500
        for i in range(n):
            table.fold(generate_draw(MAIN, BONUS, source, sequence_id=i + 1))
        assert sum(table.main.values()) == 6 * n
        assert sum(table.bonus.values()) == n

    def test_distribution_zero_filled(self):
        """分布が範囲内の全数字を含むこと"""
        table = FrequencyTable()
        table.fold(self._draw([1, 2, 3, 4, 5, 6], 3))
        dist = table.main_distribution(1, 31)
        assert list(dist.keys()) == list(range(1, 32))
        assert dist[31] == 0
        assert dist[1] == 1

    def test_reset(self):
        table = FrequencyTable()
        table.fold(self._draw([1, 2, 3, 4, 5, 6], 3))
        table.reset()
        assert not table.main
        assert not table.bonus
        assert table.total_main_sum == 0
        assert table.trials == 0


# ==========================================
# 進捗通知のテスト
# ==========================================


class TestProgressReporter:
    """ProgressReporter のテスト"""

    def _emitted(self, total):
        reporter = ProgressReporter(total)
        return [m.completed_fraction for i in range(1, total + 1) if (m := reporter.check(i))]

    def test_ten_notifications(self):
        """割り切れる場合は10%刻みで10回"""
        fractions = self._emitted(1000)
        assert len(fractions) == 10
        assert fractions[0] == pytest.approx(0.1)
        assert fractions[-1] == pytest.approx(1.0)

    def test_uneven_total(self):
        """割り切れない場合は ceil(total/10) ごと"""
        reporter = ProgressReporter(25)
        assert reporter.interval == 3
        fractions = self._emitted(25)
        assert len(fractions) == 8
        assert fractions[-1] == pytest.approx(24 / 25)

    def test_small_total(self):
        """試行回数が10未満なら毎回通知"""
        fractions = self._emitted(3)
        assert fractions == pytest.approx([1 / 3, 2 / 3, 1.0])

    def test_non_decreasing(self):
        fractions = self._emitted(997)
        assert fractions == sorted(fractions)
        assert all(0.0 < f <= 1.0 for f in fractions)

    def test_invalid_total(self):
        with pytest.raises(ValueError):
            ProgressReporter(0)


# ==========================================
# オーケストレーターのテスト
# ==========================================


class TestSimulationOrchestrator:
    """SimulationOrchestrator のテスト"""

    @pytest.fixture
    def config(self):
        return SimulationConfig(iterations=1000, main_range=MAIN, bonus_range=BONUS, seed=7)

    def test_default_scenario(self, config):
        """1000回・6/31・1/12 で完了メッセージの内容が正しいこと"""
        result = SimulationOrchestrator().run(config)
        stats = result.statistics

        assert isinstance(result, CompleteMessage)
        assert stats.total_simulations == 1000
        assert len(stats.most_frequent_main) == 6
        assert all(1 <= n <= 31 for n in stats.most_frequent_main)
        assert 1 <= stats.most_frequent_bonus <= 12
        assert len(stats.ranked_combinations) == 3
        assert stats.processing_time_ms >= 0

    def test_frequency_totals(self, config):
        """集計の合計が試行回数と一致すること（取りこぼし・二重計上なし）"""
        stats = SimulationOrchestrator().run(config).statistics
        assert sum(stats.main_frequency.values()) == 6 * 1000
        assert sum(stats.bonus_frequency.values()) == 1000
        assert set(stats.main_frequency) == set(range(1, 32))
        assert set(stats.bonus_frequency) == set(range(1, 13))

    def test_most_frequent_are_top(self, config):
        """最頻出の本数字が頻度上位から選ばれていること"""
        stats = SimulationOrchestrator().run(config).statistics
        chosen = [stats.main_frequency[n] for n in stats.most_frequent_main]
        others = [c for n, c in stats.main_frequency.items() if n not in stats.most_frequent_main]
        assert min(chosen) >= max(others)
        assert list(stats.most_frequent_main) == sorted(stats.most_frequent_main)

    def test_average_sum(self):
        """本数字合計の平均が四捨五入されること"""
        source = FixedSource([1, 2, 3, 4, 5, 6, 1, 1, 2, 3, 4, 5, 7, 2])
        config = SimulationConfig(iterations=2, main_range=MAIN, bonus_range=BONUS)
        stats = SimulationOrchestrator(random_source=source).run(config).statistics
        # 1回目: 1〜6（合計21）、2回目: 1〜5と7（合計22）→ 平均21.5 → 22
        assert stats.average_sum == 22

    def test_trailing_window(self):
        """直近50件のみ保持され、古いものから捨てられること"""
        config = SimulationConfig(iterations=120, main_range=MAIN, bonus_range=BONUS, seed=1)
        result = SimulationOrchestrator().run(config)
        ids = [d.sequence_id for d in result.trailing_draws]
        assert len(ids) == TRAILING_WINDOW_SIZE
        assert ids == list(range(71, 121))

    def test_trailing_window_short_run(self):
        config = SimulationConfig(iterations=5, main_range=MAIN, bonus_range=BONUS, seed=1)
        result = SimulationOrchestrator().run(config)
        assert [d.sequence_id for d in result.trailing_draws] == [1, 2, 3, 4, 5]

    def test_progress_callback(self, config):
        """進捗コールバックが10回、単調増加で呼ばれること"""
        calls = []
        SimulationOrchestrator().run(config, progress_callback=calls.append)
        assert len(calls) == 10
        assert calls == sorted(calls)
        assert calls[-1] == pytest.approx(1.0)

    def test_progress_callback_is_live(self, config):
        """進捗コールバックが各区間の完了時点で呼ばれること（実行完了後にまとめて呼ばれない）"""
        sim = SimulationOrchestrator()
        completed_at_call = []
        sim.run(config, progress_callback=lambda fraction: completed_at_call.append(sim.completed))
        assert completed_at_call == [100 * i for i in range(1, 11)]

    def test_progress_callback_uneven_total(self):
        """割り切れない試行回数でも区間の終わりで通知されること"""
        config = SimulationConfig(iterations=25, main_range=MAIN, bonus_range=BONUS, seed=3)
        sim = SimulationOrchestrator()
        completed_at_call = []
        sim.run(config, progress_callback=lambda fraction: completed_at_call.append(sim.completed))
        assert completed_at_call == [3, 6, 9, 12, 15, 18, 21, 24]

    def test_step_messages_order(self, config):
        """段階実行で終端メッセージが最後に1回だけ出ること"""
        sim = SimulationOrchestrator()
        sim.start(config)
        messages = []
        while not sim.finished:
            messages.extend(sim.step(37))
        assert isinstance(messages[-1], CompleteMessage)
        assert all(isinstance(m, ProgressMessage) for m in messages[:-1])
        assert sim.state is SimulationState.COMPLETED
        assert sim.step(10) == []

    def test_impossible_range(self):
        """6個を1〜5から選ぶ設定は即座にConfigurationError"""
        source = FixedSource([1])
        config = SimulationConfig(
            iterations=10,
            main_range=RangeSpec(min=1, max=5, count=6),
            bonus_range=BONUS,
        )
        sim = SimulationOrchestrator(random_source=source)
        with pytest.raises(ConfigurationError):
            sim.start(config)
        assert source.calls == 0
        assert sim.state is SimulationState.IDLE

    @pytest.mark.parametrize("iterations", [0, -5])
    def test_invalid_iterations(self, iterations):
        """試行回数0以下でConfigurationError"""
        config = SimulationConfig(iterations=iterations, main_range=MAIN, bonus_range=BONUS)
        with pytest.raises(ConfigurationError, match="試行回数"):
            SimulationOrchestrator().run(config)

    def test_execution_failure(self):
        """実行中の例外はErrorMessageになり、部分的な統計は返さないこと"""
        config = SimulationConfig(iterations=100, main_range=MAIN, bonus_range=BONUS)
        sim = SimulationOrchestrator(random_source=FailingSource(fail_at=50))
        sim.start(config)
        messages = sim.step(100)

        assert len(messages) == 1
        assert isinstance(messages[0], ErrorMessage)
        assert "out of entropy" in messages[0].message
        assert sim.state is SimulationState.FAILED

    def test_execution_failure_raises_in_run(self):
        config = SimulationConfig(iterations=100, main_range=MAIN, bonus_range=BONUS)
        with pytest.raises(ExecutionFailure):
            SimulationOrchestrator(random_source=FailingSource(fail_at=3)).run(config)

    def test_busy(self, config):
        """実行中の再開始は拒否されること"""
        sim = SimulationOrchestrator()
        sim.start(config)
        with pytest.raises(SimulationBusyError):
            sim.start(config)

    def test_restart_resets_state(self, config):
        """完了後の再実行で集計がリセットされること"""
        sim = SimulationOrchestrator()
        sim.run(config)
        stats = sim.run(config).statistics
        assert sum(stats.bonus_frequency.values()) == 1000

    def test_seed_reproducible(self, config):
        """同じシードで同じ統計になること"""
        a = SimulationOrchestrator().run(config).statistics
        b = SimulationOrchestrator().run(config).statistics
        assert a.main_frequency == b.main_frequency
        assert a.ranked_combinations == b.ranked_combinations

    def test_numpy_source(self):
        config = SimulationConfig(iterations=200, main_range=MAIN, bonus_range=BONUS, seed=9, rng="numpy")
        stats = SimulationOrchestrator().run(config).statistics
        assert sum(stats.main_frequency.values()) == 1200
