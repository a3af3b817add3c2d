"""RelayManager - runs one NetworkSession per configured network."""

from __future__ import annotations

import asyncio
import logging

from ..application_context import ApplicationContext
from ..config.model import RelayConfig
from ..constants import MANAGER_LOOP_SLEEP_SECONDS
from ..logs.logger import logger
from .network import NetworkSession
from .router import DispatchRouter
from .signal_handler import SignalHandler


class RelayManager:
    """Owns the per-network session tasks and their shutdown.

    Networks are independent: a failing network reconnects on its own and
    never affects the others. All sessions share one router, and through it
    one HTTP session.
    """

    def __init__(self, config: RelayConfig, context: ApplicationContext) -> None:
        self.config = config
        self.context = context
        self.signals = SignalHandler()
        self.sessions: list[NetworkSession] = []
        self.tasks: list[asyncio.Task[None]] = []
        self.running = False
        self.router: DispatchRouter | None = None

    @property
    def shutdown_initiated(self) -> bool:
        return self.signals.shutdown_initiated

    def stop(self) -> None:
        self.signals.stop()

    def setup_signal_handlers(self) -> None:  # pragma: no cover
        self.signals.setup_signal_handlers()

    def _create_session(self, name: str) -> NetworkSession:
        if self.router is None:
            raise RuntimeError("Router not initialized")
        return NetworkSession(name, self.config.networks[name], self.config, self.router)

    async def start(self) -> bool:
        """Create and launch a session task for every network."""
        if self.context.gateway is None:
            raise RuntimeError("ApplicationContext required")
        self.router = DispatchRouter(self.context.gateway, self.config, self.context.quotes)
        logger.log_event("app", "start", networks=len(self.config.networks))
        for name in self.config.networks:
            session = self._create_session(name)
            self.sessions.append(session)
            self.tasks.append(asyncio.create_task(session.run(), name=f"network:{name}"))
        self.running = True
        return True

    async def stop_all(self) -> None:
        """Cancel every session task and wait for them to unwind."""
        if not self.running:
            return
        for session in self.sessions:
            session.stop()
        for task in self.tasks:
            if not task.done():
                task.cancel()
        if self.router is not None:
            self.router.cancel_pending()
        await self._wait_for_task_completion()
        self.running = False

    async def _wait_for_task_completion(self) -> None:
        if not self.tasks:
            return
        try:
            results = await asyncio.gather(*self.tasks, return_exceptions=True)
            for session, result in zip(self.sessions, results, strict=True):
                if isinstance(result, Exception):
                    logging.warning(
                        f"💥 Network task {session.name} finished with exception: {result}"
                    )
        finally:
            self.tasks.clear()


async def _run_main_loop(manager: RelayManager) -> None:
    """Poll for shutdown requests and unexpectedly finished tasks."""
    while manager.running:
        await asyncio.sleep(MANAGER_LOOP_SLEEP_SECONDS)
        if manager.shutdown_initiated:
            logger.log_event("app", "shutdown", level=logging.WARNING)
            await manager.stop_all()
            break
        if all(task.done() for task in manager.tasks):
            logger.log_event("app", "tasks_finished", level=logging.WARNING)
            break


async def run_relay(config: RelayConfig) -> None:
    """Run the relay for ``config`` until a signal or cancellation stops it."""
    context = await ApplicationContext.create(config)
    manager = RelayManager(config, context)
    manager.setup_signal_handlers()
    try:
        await manager.start()
        logger.log_event("app", "running")
        await _run_main_loop(manager)
    except asyncio.CancelledError:
        logging.debug("Operation cancelled")
        raise
    finally:
        await manager.stop_all()
        await asyncio.shield(context.shutdown())
        logger.log_event("app", "goodbye")
