"""
抽選シミュレーター - 実行管理モジュール

呼び出し側からはメッセージのストリームとしてシミュレーションを扱う。

    1. start() で設定を検証し、ワーカープロセスを起動する
    2. events() で "progress" を0回以上、最後に終端メッセージを1回受け取る
    3. cancel() でいつでも中断できる（終端メッセージは保証しない）

ワーカーが起動できない、または終端メッセージなしで停止した場合は、
呼び出し元スレッドで同じアルゴリズムを小分けに実行する（フォールバック）。
"""

import logging
import threading
import time
from typing import Callable, Iterable, Iterator, Optional

from src.common import FALLBACK_BATCH_SIZE
from src.simulation.engine import SimulationOrchestrator
from src.simulation.errors import (
    ExecutionFailure,
    SimulationBusyError,
    SimulationError,
    TransportFailure,
)
from src.simulation.models import (
    CompleteMessage,
    ErrorMessage,
    ProgressMessage,
    SimulationConfig,
    SimulationMessage,
    message_from_dict,
)
from src.simulation.worker import WorkerHandle, launch_worker

LOGGER = logging.getLogger(__name__)


def _default_yield() -> None:
    # 他スレッドに実行を譲る
    time.sleep(0)


class SimulationRunner:
    """
    シミュレーションの非同期実行を管理する。

    同時に実行できるのは1回分のみで、実行中の start() は拒否する。

    使用例:
        >>> runner = SimulationRunner()
        >>> runner.start(SimulationConfig.for_game("ESWERTE", 100_000))
        >>> for message in runner.events():
        ...     print(message.type)
    """

    def __init__(
        self,
        use_worker: bool = True,
        batch_size: int = FALLBACK_BATCH_SIZE,
        poll_interval: float = 0.05,
        yield_hook: Optional[Callable[[], None]] = None,
    ) -> None:
        """
        Args:
            use_worker: False の場合は最初からフォールバック実行する
            batch_size: フォールバック実行時に1回で処理する試行数
            poll_interval: ワーカーのメッセージを待つ間隔（秒）
            yield_hook: フォールバック実行でバッチごとに呼ぶ関数
        """
        self.use_worker = use_worker
        self.batch_size = batch_size
        self.poll_interval = poll_interval
        self._yield = yield_hook or _default_yield

        self._lock = threading.Lock()
        self._active = False
        self._cancelled = threading.Event()
        self._config: Optional[SimulationConfig] = None
        self._handle: Optional[WorkerHandle] = None
        self._last_fraction = 0.0
        self._run_id = 0

        # 直近の実行がフォールバックで行われたかどうか
        self.used_fallback = False

    @property
    def running(self) -> bool:
        with self._lock:
            return self._active

    def start(self, config: SimulationConfig) -> None:
        """
        実行を開始する。

        Raises:
            ConfigurationError: 設定が不正な場合（試行は行わない）
            SimulationBusyError: すでに実行中の場合
        """
        config.validate()
        with self._lock:
            if self._active:
                raise SimulationBusyError("シミュレーションはすでに実行中です")
            self._active = True
            self._run_id += 1

        self._config = config
        self._cancelled = threading.Event()
        self._last_fraction = 0.0
        self._handle = None
        self.used_fallback = False

        if not self.use_worker:
            return
        try:
            self._handle = launch_worker(config)
        except TransportFailure as exc:
            LOGGER.warning("%s; running simulation in-process.", exc)

    def events(self) -> Iterator[SimulationMessage]:
        """
        実行中のシミュレーションのメッセージを順に返す。

        進捗は単調増加で、終端メッセージ（complete / error）は必ず最後。
        cancel() された場合は終端メッセージなしで終わる。
        """
        if not self.running:
            raise RuntimeError("SimulationRunner has not started a simulation.")

        run_id = self._run_id
        cancelled = self._cancelled
        try:
            if self._handle is not None:
                try:
                    yield from self._ordered(self._worker_events(self._handle, cancelled))
                    return
                except TransportFailure as exc:
                    if cancelled.is_set():
                        return
                    LOGGER.warning("%s; falling back to in-process simulation.", exc)
                    self._teardown_worker()
            yield from self._ordered(self._fallback_events(self._config, cancelled))
        finally:
            # cancel() 後に次の実行が始まっていれば触らない
            if run_id == self._run_id:
                self._teardown_worker()
                with self._lock:
                    self._active = False

    def run(
        self,
        config: SimulationConfig,
        progress_callback: Optional[Callable[[float], None]] = None,
    ) -> CompleteMessage:
        """
        開始から完了までを待って結果を返す。

        Raises:
            ConfigurationError: 設定が不正な場合
            SimulationBusyError: すでに実行中の場合
            ExecutionFailure: エラーで終了した、または中断された場合
        """
        self.start(config)
        events = self.events()
        try:
            for message in events:
                if isinstance(message, ProgressMessage):
                    if progress_callback:
                        progress_callback(message.completed_fraction)
                elif isinstance(message, ErrorMessage):
                    raise ExecutionFailure(message.message)
                else:
                    return message
        finally:
            events.close()
        raise ExecutionFailure("シミュレーションは中断されました")

    def cancel(self) -> None:
        """実行を中断し、ワーカーを停止する（部分結果は返さない）"""
        self._cancelled.set()
        self._teardown_worker()
        with self._lock:
            self._active = False

    # ------------------------------------------------------------------ internals

    def _ordered(self, messages: Iterable[SimulationMessage]) -> Iterator[SimulationMessage]:
        """すでに通知した割合以下の進捗を捨てる（フォールバック切り替え時の巻き戻り防止）"""
        for message in messages:
            if isinstance(message, ProgressMessage):
                if message.completed_fraction <= self._last_fraction:
                    continue
                self._last_fraction = message.completed_fraction
            yield message

    def _worker_events(self, handle: WorkerHandle, cancelled: threading.Event) -> Iterator[SimulationMessage]:
        while not cancelled.is_set():
            raw = handle.read(self.poll_interval)
            if raw is None:
                if handle.alive:
                    continue
                # 停止直前に送られたメッセージを拾う
                raw = handle.read(self.poll_interval)
                if raw is None:
                    if cancelled.is_set():
                        return
                    exitcode = getattr(handle.process, "exitcode", None)
                    raise TransportFailure(f"ワーカーが終了メッセージなしで停止しました (exitcode={exitcode})")

            try:
                message = message_from_dict(raw)
            except (ValueError, KeyError, TypeError, AttributeError) as exc:
                raise TransportFailure(f"ワーカーから不正なメッセージを受信しました: {raw!r}") from exc
            yield message
            if message.terminal:
                return

    def _fallback_events(
        self, config: SimulationConfig, cancelled: threading.Event
    ) -> Iterator[SimulationMessage]:
        self.used_fallback = True
        orchestrator = SimulationOrchestrator()
        try:
            orchestrator.start(config)
        except SimulationError as exc:
            yield ErrorMessage(message=f"シミュレーション失敗: {exc}")
            return

        while not orchestrator.finished:
            if cancelled.is_set():
                return
            yield from orchestrator.step(self.batch_size)
            if not orchestrator.finished:
                self._yield()

    def _teardown_worker(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.terminate()
