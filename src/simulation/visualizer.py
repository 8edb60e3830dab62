"""
抽選シミュレーター - インタラクティブ可視化モジュール

plotly を使用してシミュレーション結果を
インタラクティブなHTMLグラフとして出力する。
"""

import os
from datetime import datetime
from typing import Optional

import plotly.graph_objects as go

from src.simulation.analyzer import expected_count
from src.simulation.models import CompleteMessage, SimulationConfig

# ── カラーパレット ──
BG_COLOR = "#0d1117"
CARD_COLOR = "#161b22"
TEXT_COLOR = "#e6edf3"
ACCENT_COLOR = "#58a6ff"
GRID_COLOR = "#30363d"
HOT_COLOR = "#ff6b6b"
COLD_COLOR = "#4ecdc4"
MUTED_COLOR = "#8b949e"


def _apply_layout(fig: go.Figure, title: str, x_title: str, y_title: str, height: int = 450) -> None:
    """共通のダークテーマを適用する"""
    fig.update_layout(
        title=dict(text=title, font=dict(size=20, color=TEXT_COLOR), x=0.5),
        xaxis=dict(title=x_title, tickmode="linear", dtick=1, gridcolor=GRID_COLOR, color=TEXT_COLOR),
        yaxis=dict(title=y_title, gridcolor=GRID_COLOR, color=TEXT_COLOR),
        plot_bgcolor=CARD_COLOR,
        paper_bgcolor=BG_COLOR,
        font=dict(color=TEXT_COLOR),
        hoverlabel=dict(bgcolor=CARD_COLOR, font_size=13, font_color=TEXT_COLOR),
        margin=dict(l=60, r=30, t=60, b=40),
        height=height,
    )


def build_main_frequency_figure(result: CompleteMessage, config: SimulationConfig, title: str) -> go.Figure:
    """本数字の出現頻度（棒グラフ、期待値ライン付き）"""
    stats = result.statistics
    total = stats.total_simulations
    numbers = sorted(stats.main_frequency)
    counts = [stats.main_frequency[n] for n in numbers]
    pcts = [c / total * 100 for c in counts]
    expected = expected_count(total, config)

    # 期待値より上=ホット、下=コールド
    bar_colors = [HOT_COLOR if c > expected else COLD_COLOR for c in counts]

    fig = go.Figure()
    fig.add_hline(
        y=expected,
        line_dash="dash",
        line_color=MUTED_COLOR,
        line_width=1,
        annotation_text=f"期待値 ({expected:,.0f})",
        annotation_position="top right",
        annotation_font_color=MUTED_COLOR,
    )
    fig.add_trace(
        go.Bar(
            x=numbers,
            y=counts,
            marker_color=bar_colors,
            marker_line_width=0,
            hovertemplate="<b>数字 %{x}</b><br>出現回数: %{y:,}<br>割合: %{customdata:.2f}%<extra></extra>",
            customdata=pcts,
        )
    )
    _apply_layout(fig, f"🎰 {title} 本数字の出現頻度", "数字", "出現回数")
    return fig


def build_bonus_frequency_figure(result: CompleteMessage, title: str) -> go.Figure:
    """ボーナス数字の出現頻度（最頻出を強調）"""
    stats = result.statistics
    numbers = sorted(stats.bonus_frequency)
    counts = [stats.bonus_frequency[n] for n in numbers]
    bar_colors = [HOT_COLOR if n == stats.most_frequent_bonus else ACCENT_COLOR for n in numbers]

    fig = go.Figure()
    fig.add_trace(
        go.Bar(
            x=numbers,
            y=counts,
            marker_color=bar_colors,
            marker_line_width=0,
            hovertemplate="<b>ボーナス %{x}</b><br>出現回数: %{y:,}<extra></extra>",
        )
    )
    _apply_layout(fig, f"⭐ {title} ボーナス数字の出現頻度", "数字", "出現回数", height=380)
    return fig


def build_ranking_table(result: CompleteMessage) -> go.Figure:
    """推奨組み合わせの表"""
    combos = result.statistics.ranked_combinations
    fig = go.Figure(
        go.Table(
            header=dict(
                values=["順位", "本数字", "ボーナス", "スコア"],
                fill_color=GRID_COLOR,
                font=dict(color=TEXT_COLOR, size=14),
                align="center",
            ),
            cells=dict(
                values=[
                    [c.rank for c in combos],
                    [" - ".join(f"{n:02d}" for n in c.main_numbers) for c in combos],
                    [f"{c.bonus_number:02d}" for c in combos],
                    [c.frequency_score for c in combos],
                ],
                fill_color=CARD_COLOR,
                font=dict(color=TEXT_COLOR, size=13),
                align="center",
                height=32,
            ),
        )
    )
    fig.update_layout(paper_bgcolor=BG_COLOR, margin=dict(l=20, r=20, t=20, b=20), height=220)
    return fig


def generate_report_html(
    result: CompleteMessage,
    config: SimulationConfig,
    title: str = "e-Swerte 6/31",
    output_dir: str = "output",
    filepath: Optional[str] = None,
) -> str:
    """
    シミュレーション結果のインタラクティブHTMLレポートを生成する。

    含まれるグラフ:
    1. 本数字の出現頻度（棒グラフ）
    2. ボーナス数字の出現頻度（棒グラフ）
    3. 推奨組み合わせ（表）

    Args:
        result: 完了メッセージ
        config: 実行設定
        title: 表示用タイトル
        output_dir: 出力ディレクトリ
        filepath: 出力ファイルパス（省略時は自動生成）

    Returns:
        保存したHTMLファイルのパス
    """
    if filepath is None:
        os.makedirs(output_dir, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = os.path.join(output_dir, f"sim_report_{timestamp}.html")

    stats = result.statistics
    main = config.main_range
    bonus = config.bonus_range

    main_html = build_main_frequency_figure(result, config, title).to_html(full_html=False, include_plotlyjs=False)
    bonus_html = build_bonus_frequency_figure(result, title).to_html(full_html=False, include_plotlyjs=False)
    table_html = build_ranking_table(result).to_html(full_html=False, include_plotlyjs=False)
    timestamp_str = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

    stat_cards = [
        ("本数字", f"{main.count} / {main.min}〜{main.max}"),
        ("ボーナス", f"{bonus.min}〜{bonus.max}"),
        ("試行回数", f"{stats.total_simulations:,}"),
        ("処理時間", f"{stats.processing_time_ms:,} ms"),
        ("合計の平均", f"{stats.average_sum}"),
    ]
    cards_html = "\n".join(
        f'        <div class="stat-card"><div class="label">{label}</div><div class="value">{value}</div></div>'
        for label, value in stat_cards
    )

    html_content = f"""<!DOCTYPE html>
<html lang="ja">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title} シミュレーション結果</title>
    <script src="https://cdn.plot.ly/plotly-3.0.1.min.js"></script>
    <style>
        * {{ margin: 0; padding: 0; box-sizing: border-box; }}
        body {{
            background: {BG_COLOR};
            color: {TEXT_COLOR};
            font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Helvetica, Arial, sans-serif;
            padding: 20px;
        }}
        .header {{ text-align: center; padding: 30px 0; border-bottom: 1px solid {GRID_COLOR}; margin-bottom: 30px; }}
        .header h1 {{ font-size: 2em; margin-bottom: 10px; }}
        .header .meta {{ color: {MUTED_COLOR}; font-size: 0.9em; }}
        .stats {{ display: flex; justify-content: center; gap: 40px; margin: 20px 0; flex-wrap: wrap; }}
        .stat-card {{
            background: {CARD_COLOR};
            border: 1px solid {GRID_COLOR};
            border-radius: 8px;
            padding: 15px 25px;
            text-align: center;
        }}
        .stat-card .label {{ color: {MUTED_COLOR}; font-size: 0.85em; margin-bottom: 5px; }}
        .stat-card .value {{ font-size: 1.5em; font-weight: bold; color: {ACCENT_COLOR}; }}
        .chart-section {{
            background: {CARD_COLOR};
            border: 1px solid {GRID_COLOR};
            border-radius: 12px;
            padding: 20px;
            margin-bottom: 25px;
        }}
        footer {{
            text-align: center;
            padding: 20px;
            color: #484f58;
            font-size: 0.8em;
            border-top: 1px solid {GRID_COLOR};
            margin-top: 30px;
        }}
    </style>
</head>
<body>
    <div class="header">
        <h1>🎰 {title} シミュレーション</h1>
        <p class="meta">実行日時: {timestamp_str}</p>
    </div>

    <div class="stats">
{cards_html}
    </div>

    <div class="chart-section">
        {table_html}
    </div>

    <div class="chart-section">
        {main_html}
    </div>

    <div class="chart-section">
        {bonus_html}
    </div>

    <footer>
        スコアはシミュレーション上の頻度に基づく指標であり、実際の抽選結果を予測するものではありません
    </footer>
</body>
</html>"""

    with open(filepath, "w", encoding="utf-8") as f:
        f.write(html_content)

    return filepath
