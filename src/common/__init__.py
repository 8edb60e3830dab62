"""
抽選シミュレーター - 共通設定

ゲームごとの数字範囲とエンジン全体で使う定数を定義する。
"""

# ゲーム定義
# main: 本数字（min〜max から count 個を非重複で選択）
# bonus: ボーナス数字
GAME_CONFIG: dict[str, dict] = {
    "ESWERTE": {
        "name": "e-Swerte 6/31",
        "main": {"min": 1, "max": 31, "count": 6},
        "bonus": {"min": 1, "max": 12, "count": 1},
    },
    "LOTO6": {
        "name": "ロト6",
        "main": {"min": 1, "max": 43, "count": 6},
        "bonus": {"min": 1, "max": 43, "count": 1},
    },
    "MINILOTO": {
        "name": "ミニロト",
        "main": {"min": 1, "max": 31, "count": 5},
        "bonus": {"min": 1, "max": 31, "count": 1},
    },
}

DEFAULT_GAME = "ESWERTE"

# 表示用に保持する直近の抽選結果の件数
TRAILING_WINDOW_SIZE = 50

# 進捗通知の分割数（約10%刻み）
PROGRESS_STEPS = 10

# フォールバック実行時に1回で処理する試行数
FALLBACK_BATCH_SIZE = 10

# ワーカー実行時に1回で処理する試行数
WORKER_BATCH_SIZE = 1_000

# 利用可能な乱数ソース
RNG_KINDS: tuple[str, ...] = ("stdlib", "numpy")

# ランク別スコアの重み（1位のスコアに対する%。1位, 2位, 3位）
RANK_WEIGHTS: tuple[int, ...] = (100, 85, 70)
RANK_LABELS: tuple[str, ...] = ("Primary Result", "Secondary Result", "Tertiary Result")


def get_game_config(game_key: str) -> dict:
    """
    ゲームキーから設定を取得する（大文字小文字は区別しない）。

    Raises:
        ValueError: 不正なゲームキーが指定された場合
    """
    key = game_key.upper()
    if key not in GAME_CONFIG:
        raise ValueError(f"不正なゲームキー: '{game_key}' (有効: {', '.join(GAME_CONFIG.keys())})")
    return GAME_CONFIG[key]
