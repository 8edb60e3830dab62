"""
抽選シミュレーター - ワーカープロセス

別プロセスでシミュレーションを実行し、キュー経由のメッセージで結果を返す。

    inbox:  "start" メッセージを1回だけ受け取る
    outbox: "progress" を0回以上、最後に "complete" か "error" を1回送る

メッセージはすべて辞書（to_dict() の形式）で受け渡す。
"""

import logging
from dataclasses import dataclass
from multiprocessing import get_context
from queue import Empty
from typing import Any, Optional

from src.common import WORKER_BATCH_SIZE
from src.simulation.engine import SimulationOrchestrator
from src.simulation.errors import TransportFailure
from src.simulation.models import ErrorMessage, SimulationConfig, StartMessage

LOGGER = logging.getLogger(__name__)

_MP_CONTEXT = "spawn"


@dataclass
class WorkerHandle:
    """起動したワーカーのプロセスとキュー"""

    process: Any
    inbox: Any
    outbox: Any

    @property
    def alive(self) -> bool:
        return self.process.is_alive()

    def read(self, timeout: float) -> Optional[dict]:
        """
        次のメッセージを返す（timeout 秒以内に届かなければ None）。

        Raises:
            TransportFailure: キューが閉じられている、または壊れている場合
        """
        try:
            return self.outbox.get(timeout=timeout)
        except Empty:
            return None
        except (OSError, ValueError, EOFError) as exc:
            raise TransportFailure(f"ワーカーとの通信に失敗しました: {exc}") from exc

    def terminate(self) -> None:
        """プロセスを停止してキューを閉じる（複数回呼んでもよい）"""
        try:
            if self.process.is_alive():
                self.process.terminate()
            self.process.join(timeout=1.0)
        except (OSError, ValueError, AssertionError) as exc:
            LOGGER.debug("Worker teardown raised %s", exc)
        for queue in (self.inbox, self.outbox):
            try:
                queue.close()
                queue.cancel_join_thread()
            except (OSError, ValueError, AttributeError):
                pass


def launch_worker(config: SimulationConfig, context: str = _MP_CONTEXT) -> WorkerHandle:
    """
    ワーカープロセスを起動し、開始メッセージを送る。

    Raises:
        TransportFailure: プロセスを生成・起動できなかった場合
    """
    try:
        ctx = get_context(context)
        inbox = ctx.Queue()
        outbox = ctx.Queue()
        process = ctx.Process(
            target=_worker_entry,
            args=(inbox, outbox),
            name="simulation-worker",
            daemon=True,
        )
        process.start()
    except (OSError, ValueError, RuntimeError, ImportError) as exc:
        raise TransportFailure(f"ワーカープロセスを起動できません: {exc}") from exc

    inbox.put(StartMessage(config=config).to_dict())
    LOGGER.info("Simulation worker started (pid=%s, iterations=%s)", process.pid, config.iterations)
    return WorkerHandle(process=process, inbox=inbox, outbox=outbox)


def _worker_entry(inbox: Any, outbox: Any, batch_size: int = WORKER_BATCH_SIZE) -> None:
    """ワーカープロセスの処理本体"""
    command: dict = inbox.get()
    if command.get("type") != "start":
        outbox.put(ErrorMessage(message=f"不明なコマンド: {command.get('type')!r}").to_dict())
        return

    try:
        config = StartMessage.from_dict(command).config
        orchestrator = SimulationOrchestrator()
        orchestrator.start(config)
    except Exception as exc:
        outbox.put(ErrorMessage(message=f"設定エラー: {exc}").to_dict())
        return

    run_to_completion(orchestrator, outbox, batch_size)


def run_to_completion(orchestrator: SimulationOrchestrator, outbox: Any, batch_size: int) -> None:
    """終了するまで step() を繰り返し、すべてのメッセージを outbox に送る"""
    while not orchestrator.finished:
        for message in orchestrator.step(batch_size):
            outbox.put(message.to_dict())
