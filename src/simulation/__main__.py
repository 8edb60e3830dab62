"""
抽選シミュレーター - シミュレーション CLIエントリーポイント

使用方法:
    python -m src.simulation [オプション]

実行例:
    # e-Swerte 6/31（デフォルト）
    python -m src.simulation

    # 100万回、シード固定、CSVとHTMLレポートを出力
    python -m src.simulation --trials 1000000 --seed 42 --export csv --visualize

    # 範囲を直接指定（1〜45から6個、ボーナス1〜10）
    python -m src.simulation --main-max 45 --bonus-max 10

    # ワーカープロセスを使わずに実行
    python -m src.simulation --no-worker
"""

import argparse
import logging
import sys

from src.common import DEFAULT_GAME, GAME_CONFIG, get_game_config
from src.simulation.analyzer import print_report
from src.simulation.errors import SimulationError
from src.simulation.exporter import export_csv, export_json, export_txt
from src.simulation.models import RangeSpec, SimulationConfig
from src.simulation.runner import SimulationRunner
from src.simulation.visualizer import generate_report_html

_EXPORTERS = {
    "csv": export_csv,
    "txt": export_txt,
    "json": export_json,
}


def _parse_args(argv=None) -> argparse.Namespace:
    """コマンドライン引数を解析する"""
    parser = argparse.ArgumentParser(
        prog="python -m src.simulation",
        description="抽選シミュレーション（頻度統計と推奨組み合わせ）",
    )
    parser.add_argument(
        "--game",
        type=str,
        default=DEFAULT_GAME.lower(),
        choices=[key.lower() for key in GAME_CONFIG],
        help=f"対象ゲーム（デフォルト: {DEFAULT_GAME.lower()}）",
    )
    parser.add_argument(
        "--trials",
        type=int,
        default=100_000,
        help="シミュレーション試行回数（デフォルト: 100,000）",
    )
    parser.add_argument("--main-min", type=int, default=None, help="本数字の最小値")
    parser.add_argument("--main-max", type=int, default=None, help="本数字の最大値")
    parser.add_argument("--main-count", type=int, default=None, help="本数字の選択数")
    parser.add_argument("--bonus-min", type=int, default=None, help="ボーナス数字の最小値")
    parser.add_argument("--bonus-max", type=int, default=None, help="ボーナス数字の最大値")
    parser.add_argument("--seed", type=int, default=None, help="乱数シード（省略時: 非決定的）")
    parser.add_argument(
        "--rng",
        type=str,
        default="stdlib",
        choices=["stdlib", "numpy"],
        help="乱数ソース（デフォルト: stdlib）",
    )
    parser.add_argument(
        "--no-worker",
        action="store_true",
        help="ワーカープロセスを使わずに実行する",
    )
    parser.add_argument(
        "--export",
        type=str,
        default=None,
        choices=list(_EXPORTERS.keys()),
        help="結果をファイルに保存する形式",
    )
    parser.add_argument(
        "--visualize",
        action="store_true",
        help="インタラクティブHTMLレポートを生成する",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default="output",
        help="出力ディレクトリ（デフォルト: output）",
    )
    parser.add_argument("--verbose", action="store_true", help="詳細ログを表示する")
    return parser.parse_args(argv)


def _build_config(args: argparse.Namespace) -> SimulationConfig:
    """プリセットにコマンドライン引数の上書きを適用する"""
    preset = get_game_config(args.game)
    main = dict(preset["main"])
    bonus = dict(preset["bonus"])

    overrides = {
        ("main", "min"): args.main_min,
        ("main", "max"): args.main_max,
        ("main", "count"): args.main_count,
        ("bonus", "min"): args.bonus_min,
        ("bonus", "max"): args.bonus_max,
    }
    for (section, key), value in overrides.items():
        if value is not None:
            (main if section == "main" else bonus)[key] = value

    return SimulationConfig(
        iterations=args.trials,
        main_range=RangeSpec.from_dict(main),
        bonus_range=RangeSpec.from_dict(bonus),
        seed=args.seed,
        rng=args.rng,
    )


def _progress_printer(fraction: float) -> None:
    """シミュレーション進行状況をコンソールに表示"""
    print(f"\r  進行中... {fraction * 100:5.1f}%", end="", flush=True)


def main(argv=None) -> int:
    """メイン処理"""
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    game_name = get_game_config(args.game)["name"]
    config = _build_config(args)
    main_range = config.main_range
    bonus_range = config.bonus_range

    print(f"\n🎲 {game_name} シミュレーション")
    print(f"   本数字: {main_range.min}〜{main_range.max} から {main_range.count}個")
    print(f"   ボーナス: {bonus_range.min}〜{bonus_range.max}")
    print(f"   試行回数: {config.iterations:,}")

    print(f"\n🎰 シミュレーション実行中...")
    runner = SimulationRunner(use_worker=not args.no_worker)
    try:
        result = runner.run(config, progress_callback=_progress_printer)
    except SimulationError as e:
        print()
        print(f"\n❌ エラー: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        runner.cancel()
        print("\n   中断しました", file=sys.stderr)
        return 130
    print()  # 改行（進捗表示の後）

    stats = result.statistics
    suffix = "（フォールバック実行）" if runner.used_fallback else ""
    print(f"   完了！ 実行時間: {stats.processing_time_ms / 1000:.2f}秒{suffix}")

    print_report(result, config, game_name=game_name)

    if args.export:
        path = _EXPORTERS[args.export](result, config, label=args.game, output_dir=args.output_dir)
        print(f"\n💾 保存しました: {path}")

    if args.visualize:
        path = generate_report_html(result, config, title=game_name, output_dir=args.output_dir)
        print(f"\n📊 HTMLレポート: {path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
