"""
抽選シミュレーター - シミュレーション結果エクスポーター

シミュレーション結果を CSV / TXT / JSON 形式でファイルに保存する。
"""

import csv
import json
import os
from datetime import datetime
from typing import Optional

from src.common.odds import (
    calculate_probability,
    calculate_total_odds,
    format_odds,
    format_probability,
)
from src.simulation.models import CompleteMessage, SimulationConfig


def _ensure_output_dir(output_dir: str) -> None:
    """出力ディレクトリが存在しない場合は作成する"""
    os.makedirs(output_dir, exist_ok=True)


def _generate_filename(label: str, ext: str) -> str:
    """タイムスタンプ付きのファイル名を生成する"""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"sim_{label.lower()}_{timestamp}.{ext}"


def _format_number(num: int) -> str:
    """2桁ゼロ埋め（01〜31）"""
    return f"{num:02d}"


def _resolve_path(filepath: Optional[str], output_dir: str, label: str, ext: str) -> str:
    if filepath is None:
        _ensure_output_dir(output_dir)
        return os.path.join(output_dir, _generate_filename(label, ext))
    parent = os.path.dirname(filepath)
    if parent:
        _ensure_output_dir(parent)
    return filepath


def export_csv(
    result: CompleteMessage,
    config: SimulationConfig,
    label: str = "eswerte",
    output_dir: str = "output",
    filepath: Optional[str] = None,
) -> str:
    """
    シミュレーション結果をCSVファイルに保存する。

    出力ファイルは4つのセクションを含む:
    1. メタデータ
    2. 推奨組み合わせ
    3. 本数字・ボーナス数字の出現頻度
    4. 直近の抽選結果

    Args:
        result: 完了メッセージ
        config: 実行設定
        label: ファイル名に使うラベル
        output_dir: 出力ディレクトリ
        filepath: 出力ファイルパス（省略時は自動生成）

    Returns:
        保存したファイルのパス
    """
    filepath = _resolve_path(filepath, output_dir, label, "csv")
    stats = result.statistics
    total = stats.total_simulations

    with open(filepath, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)

        # ── メタデータ ──
        writer.writerow(["# メタデータ"])
        writer.writerow(["試行回数", total])
        writer.writerow(["処理時間(ms)", stats.processing_time_ms])
        writer.writerow(["本数字", f"{config.main_range.count} of {config.main_range.min}-{config.main_range.max}"])
        writer.writerow(["ボーナス数字", f"{config.bonus_range.min}-{config.bonus_range.max}"])
        writer.writerow(["全組み合わせ数", calculate_total_odds(config.main_range, config.bonus_range)])
        writer.writerow(["本数字合計の平均", stats.average_sum])
        writer.writerow(["実行日時", datetime.now().strftime("%Y-%m-%d %H:%M:%S")])
        writer.writerow([])

        # ── 推奨組み合わせ ──
        writer.writerow(["# 推奨組み合わせ"])
        writer.writerow(["順位", "本数字", "ボーナス数字", "スコア"])
        for combo in stats.ranked_combinations:
            writer.writerow([
                combo.rank,
                ";".join(_format_number(n) for n in combo.main_numbers),
                _format_number(combo.bonus_number),
                combo.frequency_score,
            ])
        writer.writerow([])

        # ── 出現頻度 ──
        writer.writerow(["# 本数字の出現頻度"])
        writer.writerow(["数字", "出現回数", "割合(%)"])
        for num, count in sorted(stats.main_frequency.items(), key=lambda x: (-x[1], x[0])):
            writer.writerow([num, count, f"{count / total * 100:.2f}"])
        writer.writerow([])

        writer.writerow(["# ボーナス数字の出現頻度"])
        writer.writerow(["数字", "出現回数", "割合(%)"])
        for num, count in sorted(stats.bonus_frequency.items(), key=lambda x: (-x[1], x[0])):
            writer.writerow([num, count, f"{count / total * 100:.2f}"])
        writer.writerow([])

        # ── 直近の抽選結果 ──
        writer.writerow(["# 直近の抽選結果"])
        writer.writerow(["試行番号", "本数字", "ボーナス数字", "チェックサム"])
        for draw in result.trailing_draws:
            writer.writerow([
                draw.sequence_id,
                ";".join(_format_number(n) for n in draw.main_numbers),
                _format_number(draw.bonus_number),
                draw.checksum,
            ])

    return filepath


def export_txt(
    result: CompleteMessage,
    config: SimulationConfig,
    label: str = "eswerte",
    output_dir: str = "output",
    filepath: Optional[str] = None,
) -> str:
    """
    シミュレーション結果をレシート風のテキストファイルに保存する。

    Returns:
        保存したファイルのパス
    """
    filepath = _resolve_path(filepath, output_dir, label, "txt")
    stats = result.statistics
    main = config.main_range
    bonus = config.bonus_range

    separator = "═" * 40
    thin_separator = "─" * 40
    odds = format_odds(calculate_total_odds(main, bonus))
    probability = format_probability(calculate_probability(main, bonus))

    lines = [
        separator,
        "LOTTERY SIMULATION REPORT".center(40).rstrip(),
        separator,
        "",
        f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        f"Simulations: {stats.total_simulations:,}",
        "",
        thin_separator,
        "OPTIMIZED COMBINATIONS".center(40).rstrip(),
        thin_separator,
        "",
    ]
    for combo in stats.ranked_combinations:
        numbers = " · ".join(_format_number(n) for n in combo.main_numbers)
        lines.append(f"  {combo.rank} (score {combo.frequency_score})")
        lines.append(f"    MAIN ({main.count} of {main.max}): {numbers}")
        lines.append(f"    BONUS (1 of {bonus.max}): {_format_number(combo.bonus_number)}")
        lines.append("")

    lines += [
        thin_separator,
        "STATISTICS".center(40).rstrip(),
        thin_separator,
        "",
        f"  Odds:        1 in {odds}",
        f"  Probability: {probability}",
        f"  Average sum: {stats.average_sum}",
        "",
        thin_separator,
        "",
        "  DISCLAIMER:",
        "  Scores are a fixed heuristic over",
        "  simulated draws, not a forecast of",
        "  real lottery outcomes.",
        "",
        separator,
    ]

    with open(filepath, "w", encoding="utf-8") as f:
        f.write("\n".join(lines) + "\n")

    return filepath


def export_json(
    result: CompleteMessage,
    config: SimulationConfig,
    label: str = "eswerte",
    output_dir: str = "output",
    filepath: Optional[str] = None,
) -> str:
    """
    シミュレーション結果をJSONファイルに保存する。

    Returns:
        保存したファイルのパス
    """
    filepath = _resolve_path(filepath, output_dir, label, "json")

    data = {
        "metadata": {
            "label": label,
            "main_range": config.main_range.to_dict(),
            "bonus_range": config.bonus_range.to_dict(),
            "iterations": config.iterations,
            "seed": config.seed,
            "rng": config.rng,
            "total_odds": calculate_total_odds(config.main_range, config.bonus_range),
            "timestamp": datetime.now().isoformat(),
        },
        **result.to_dict(),
    }
    data.pop("type", None)

    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    return filepath
