"""
抽選シミュレーター - 例外定義

    ConfigurationError: 設定不正（開始前に拒否）
    ExecutionFailure:   実行中の予期しない失敗
    TransportFailure:   ワーカープロセスの起動失敗・異常終了
"""


class SimulationError(Exception):
    """シミュレーション関連の例外の基底クラス"""


class ConfigurationError(SimulationError, ValueError):
    """RangeSpec や試行回数が不正な場合に送出される"""


class ExecutionFailure(SimulationError):
    """試行の生成・集計中に発生した失敗"""


class TransportFailure(SimulationError):
    """ワーカープロセスが起動できない、または終了メッセージなしで停止した"""


class SimulationBusyError(SimulationError, RuntimeError):
    """実行中に別のシミュレーションを開始しようとした"""
