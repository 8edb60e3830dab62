"""
抽選シミュレーター - シミュレーション モジュール

本数字6個（非重複）+ ボーナス数字1個の抽選を大量試行し、
頻度統計と推奨組み合わせを導出する。

使用方法:
    python -m src.simulation [--game eswerte|loto6|miniloto] [--trials N]
"""

from src.simulation.engine import SimulationOrchestrator, SimulationState
from src.simulation.errors import (
    ConfigurationError,
    ExecutionFailure,
    SimulationBusyError,
    SimulationError,
    TransportFailure,
)
from src.simulation.models import (
    CompleteMessage,
    Draw,
    ErrorMessage,
    ProgressMessage,
    RangeSpec,
    RankedCombination,
    SimulationConfig,
    SimulationStatistics,
    StartMessage,
)
from src.simulation.runner import SimulationRunner
from src.simulation.analyzer import print_report
from src.simulation.exporter import export_csv, export_json, export_txt
from src.simulation.visualizer import generate_report_html

__all__ = [
    "SimulationOrchestrator",
    "SimulationState",
    "SimulationRunner",
    "ConfigurationError",
    "ExecutionFailure",
    "SimulationBusyError",
    "SimulationError",
    "TransportFailure",
    "CompleteMessage",
    "Draw",
    "ErrorMessage",
    "ProgressMessage",
    "RangeSpec",
    "RankedCombination",
    "SimulationConfig",
    "SimulationStatistics",
    "StartMessage",
    "print_report",
    "export_csv",
    "export_json",
    "export_txt",
    "generate_report_html",
]
