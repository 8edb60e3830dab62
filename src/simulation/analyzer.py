"""
抽選シミュレーター - シミュレーション結果分析モジュール

シミュレーションの統計をコンソールにレポートとして出力する。
"""

from src.common.odds import calculate_total_odds, format_odds
from src.simulation.models import CompleteMessage, SimulationConfig


def expected_count(total: int, config: SimulationConfig) -> float:
    """各本数字の出現回数の期待値（試行回数 × 選択数 / 範囲の大きさ）"""
    main = config.main_range
    return total * main.count / main.size


def hot_and_cold(main_frequency: dict[int, int], top_n: int = 5) -> tuple[list[tuple[int, int]], list[tuple[int, int]]]:
    """
    出現回数の多い数字と少ない数字を top_n 件ずつ返す。

    Returns:
        (ホット, コールド) それぞれ [(数字, 出現回数), ...]
    """
    sorted_freq = sorted(main_frequency.items(), key=lambda x: (-x[1], x[0]))
    hot = sorted_freq[:top_n]
    cold = sorted(main_frequency.items(), key=lambda x: (x[1], x[0]))[:top_n]
    return hot, cold


def print_report(
    result: CompleteMessage,
    config: SimulationConfig,
    game_name: str = "",
    recent_n: int = 5,
) -> None:
    """
    シミュレーション結果のレポートをコンソールに出力する。

    Args:
        result: 完了メッセージ（統計と直近の抽選結果）
        config: 実行設定
        game_name: 表示用のゲーム名
        recent_n: 表示する直近の抽選結果の件数
    """
    stats = result.statistics
    total = stats.total_simulations
    main = config.main_range
    bonus = config.bonus_range
    title = game_name or f"{main.count}/{main.max}"

    print()
    print("=" * 60)
    print(f"  🎰 {title} シミュレーション結果")
    print("=" * 60)
    print(f"  試行回数: {total:,} 回  (処理時間: {stats.processing_time_ms:,} ms)")
    print(f"  全組み合わせ数: {format_odds(calculate_total_odds(main, bonus))} 通り")
    print(f"  本数字合計の平均: {stats.average_sum}")
    print()

    # ── 最頻出 ──
    main_str = " - ".join(f"{n:2d}" for n in stats.most_frequent_main)
    print(f"  【最頻出の本数字】 {main_str}")
    print(f"  【最頻出のボーナス数字】 {stats.most_frequent_bonus}")
    print()

    # ── 推奨組み合わせ ──
    print(f"  【推奨組み合わせ】")
    print(f"  {'順位':<18}  {'本数字':<24}  {'ボーナス':>6}  {'スコア':>6}")
    print(f"  {'─' * 18}  {'─' * 24}  {'─' * 6}  {'─' * 6}")
    for combo in stats.ranked_combinations:
        nums_str = " - ".join(f"{n:2d}" for n in combo.main_numbers)
        print(f"  {combo.rank:<18}  {nums_str:<24}  {combo.bonus_number:>6}  {combo.frequency_score:>6}")
    print()

    # ── 個別数字の出現頻度 ──
    if stats.main_frequency:
        expected = expected_count(total, config)
        max_count = max(stats.main_frequency.values()) or 1
        hot, cold = hot_and_cold(stats.main_frequency)

        print(f"  【数字別出現頻度】 期待値: {expected:,.1f}")
        print(f"  ▲ よく出る数字:")
        for num, count in hot:
            bar = "█" * int(count / max_count * 20)
            print(f"    {num:>2}: {count:>8,} ({count / total * 100:>5.2f}%) {bar}")
        print(f"  ▼ あまり出ない数字:")
        for num, count in cold:
            bar = "█" * int(count / max_count * 20)
            print(f"    {num:>2}: {count:>8,} ({count / total * 100:>5.2f}%) {bar}")
        print()

    # ── 直近の抽選結果 ──
    if result.trailing_draws:
        print(f"  【直近の抽選結果】")
        for draw in result.trailing_draws[-recent_n:]:
            nums_str = " - ".join(f"{n:2d}" for n in draw.main_numbers)
            print(f"    #{draw.sequence_id:<8} {nums_str}  + {draw.bonus_number:>2}  (checksum {draw.checksum})")

    print("=" * 60)
