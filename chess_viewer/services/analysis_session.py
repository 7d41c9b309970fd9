# chess_viewer/services/analysis_session.py
"""
Provides live engine analysis of the currently displayed position.

This module contains the `EngineAnalysisSession`, an explicitly owned wrapper
around one UCI engine driven through python-chess. The session makes sure that
at most one search is outstanding at any time. Each call to `request`
supersedes the previous search: the superseded search is told to `stop` and
its `bestmove` is consumed before the next position is submitted, so its
output can never be attributed to the wrong position.

Cancellation is signalled to the running search explicitly and checked on
every engine update, so a search that streams output continuously still
yields promptly.

Every analysis path is bounded in time. Requests made while the engine is not
ready resolve immediately with a zero-valued result, a search that runs past
its timeout resolves with the best partial result, and an engine crash is
reported once and never retried.
"""

import asyncio
import dataclasses
import functools
from typing import Any, AsyncIterator, Callable, Dict, Optional

import chess
import chess.engine
import structlog

from chess_viewer.config.settings import AnalysisSettings, EngineSettings
from chess_viewer.core import engine_info
from chess_viewer.core.engine_info import ProgressThrottle
from chess_viewer.exceptions import (
    EngineCrashedError, EngineInitializationError, EngineTimeoutError, EngineUnavailableError,
    InvalidPositionError,
)
from chess_viewer.services.uci_engine import EngineFactory
from chess_viewer.types import FEN, AnalysisStatus, EngineAnalysis
from chess_viewer.utils import metrics

logger = structlog.get_logger(__name__)

ProgressCallback = Callable[[EngineAnalysis], None]
CrashCallback = Callable[[EngineCrashedError], None]


class AnalysisRequest:
    """
    A handle on one search, returned by `EngineAnalysisSession.request`.

    Iterating the handle yields throttled progress updates and stops when the
    search ends; only one consumer may iterate it. `result()` returns the
    terminal analysis, whose `status` tells how the search ended.
    """

    def __init__(self, fen: FEN, depth: int, generation: int):
        loop = asyncio.get_running_loop()
        self.fen = fen
        self.depth = depth
        self.generation = generation
        self.started_at = loop.time()
        self._latest = EngineAnalysis(fen=fen)
        self._updates: "asyncio.Queue[Optional[EngineAnalysis]]" = asyncio.Queue()
        self._result: "asyncio.Future[EngineAnalysis]" = loop.create_future()
        self._cancel_requested = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._subscribed = False

    @property
    def latest(self) -> EngineAnalysis:
        """The most recent analysis observed for this search, final or not."""
        return self._latest

    @property
    def done(self) -> bool:
        return self._result.done()

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_requested.is_set()

    async def result(self) -> EngineAnalysis:
        return await asyncio.shield(self._result)

    def cancel(self) -> None:
        """
        Cancels the search. The result resolves with status `CANCELLED` once
        the engine has acknowledged the stop.
        """
        self._cancel_requested.set()
        if self._task is None or self._task.done():
            self._finish(dataclasses.replace(self._latest, status=AnalysisStatus.CANCELLED))

    def __aiter__(self) -> AsyncIterator[EngineAnalysis]:
        if self._subscribed:
            raise RuntimeError("An analysis request supports a single subscription.")
        self._subscribed = True
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[EngineAnalysis]:
        while True:
            update = await self._updates.get()
            if update is None:
                return
            yield update

    async def _wait_cancel_requested(self) -> None:
        await self._cancel_requested.wait()

    def _observe(self, analysis: EngineAnalysis) -> None:
        self._latest = analysis

    def _publish(self, analysis: EngineAnalysis) -> None:
        if not self.done:
            self._updates.put_nowait(analysis)

    def _finish(self, analysis: EngineAnalysis) -> None:
        if self.done:
            return
        self._latest = analysis
        self._result.set_result(analysis)
        self._updates.put_nowait(None)


class EngineAnalysisSession:
    """
    Owns one UCI engine and serves analysis requests for a single viewer.

    The session is created by whoever owns the displayed document and lives as
    long as it does; call `initialize` before use and `close` when done.
    """

    def __init__(
        self,
        engine_factory: EngineFactory,
        engine_settings: EngineSettings,
        analysis_settings: AnalysisSettings,
        on_crash: Optional[CrashCallback] = None,
    ):
        """
        Args:
            engine_factory: An async callable that starts the engine and
                returns its initialized `chess.engine.UciProtocol` (see
                `uci_engine.make_engine_factory`).
            engine_settings: Handshake timeouts and UCI options.
            analysis_settings: Default depth, timeout, throttle and mate value.
            on_crash: Called once if the engine process dies.
        """
        self._engine_factory = engine_factory
        self._engine_settings = engine_settings
        self._analysis_settings = analysis_settings
        self._on_crash = on_crash
        self._engine: Optional[chess.engine.UciProtocol] = None
        self._ready = False
        self._crashed = False
        self._lock = asyncio.Lock()
        self._generation = 0
        self._current: Optional[AnalysisRequest] = None

    @property
    def is_ready(self) -> bool:
        return self._ready and not self._crashed and self._engine is not None

    @property
    def has_crashed(self) -> bool:
        return self._crashed

    @property
    def current_request(self) -> Optional[AnalysisRequest]:
        return self._current

    @property
    def engine_name(self) -> Optional[str]:
        return self._engine.id.get("name") if self._engine is not None else None

    # --- Lifecycle ---

    async def initialize(self) -> None:
        """
        Starts the engine, applies the configured options and waits until it is ready.

        Calling this again after a crash starts a fresh engine process.

        Raises:
            EngineInitializationError: If the engine cannot be started, rejects
                an option, or does not complete the handshake in time.
        """
        if self._engine is not None:
            await self.close()

        try:
            engine = await asyncio.wait_for(self._open_engine(), timeout=self._engine_settings.init_timeout_s)
        except asyncio.TimeoutError as e:
            raise EngineInitializationError("Engine did not complete the UCI handshake in time.") from e
        except (OSError, chess.engine.EngineError) as e:
            raise EngineInitializationError(f"Failed to start engine: {e}") from e

        self._engine = engine
        self._crashed = False
        self._ready = True
        logger.info("Engine ready.", name=self.engine_name, options=sorted(self._engine_settings.options))

    async def _open_engine(self) -> chess.engine.UciProtocol:
        engine = await self._engine_factory()
        try:
            await engine.configure(self._configurable_options())
            await engine.ping()
        except (Exception, asyncio.CancelledError):
            if engine.transport is not None:
                engine.transport.close()
            raise
        return engine

    def _configurable_options(self) -> Dict[str, Any]:
        options = {}
        for name, value in self._engine_settings.options.items():
            if name.lower() in chess.engine.MANAGED_OPTIONS:
                logger.warning("Ignoring engine option that is managed per search.", option=name)
                continue
            options[name] = value
        return options

    async def stop(self) -> None:
        """Cancels the in-flight request and waits until the engine has stopped searching."""
        request = self._current
        if request is not None and not request.done:
            request.cancel()
            await request.result()

    async def close(self) -> None:
        """Stops any search and terminates the engine process."""
        if self._engine is None:
            return
        await self.stop()
        engine, self._engine = self._engine, None
        self._ready = False
        if not engine.returncode.done():
            try:
                await asyncio.wait_for(engine.quit(), timeout=self._engine_settings.sync_timeout_s)
            except (asyncio.TimeoutError, chess.engine.EngineError) as e:
                logger.warning("Engine did not quit cleanly; terminating it.", error=repr(e))
                if engine.transport is not None:
                    engine.transport.close()
        logger.info("Engine session closed.")

    # --- Analysis ---

    def request(self, fen: FEN, depth: Optional[int] = None, timeout_s: Optional[float] = None) -> AnalysisRequest:
        """
        Starts analysing `fen`, superseding any previous request.

        Must be called from a running event loop. If the engine is not ready
        the returned request is already resolved with an `UNAVAILABLE`,
        zero-valued analysis.
        """
        self._generation += 1
        request = AnalysisRequest(fen, depth or self._analysis_settings.depth, self._generation)

        previous, self._current = self._current, request
        if previous is not None and not previous.done:
            logger.debug("Superseding in-flight analysis.", previous_fen=previous.fen)
            previous.cancel()

        if not self.is_ready:
            request._finish(EngineAnalysis.empty(fen))
            metrics.ANALYSES_TOTAL.labels(outcome=AnalysisStatus.UNAVAILABLE.value).inc()
            return request

        timeout = timeout_s if timeout_s is not None else self._analysis_settings.timeout_s
        request._task = asyncio.create_task(self._run(request, timeout))
        request._task.add_done_callback(functools.partial(self._on_request_done, request))
        return request

    async def analyze(
        self,
        fen: FEN,
        depth: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None,
        timeout_s: Optional[float] = None,
    ) -> EngineAnalysis:
        """
        Analyses `fen` and returns the terminal analysis.

        Args:
            fen: The position to analyse.
            depth: Search depth; defaults to the configured depth.
            on_progress: Receives throttled intermediate analyses.
            timeout_s: Bounded wait; defaults to the configured timeout.
        """
        request = self.request(fen, depth, timeout_s)
        try:
            if on_progress is not None:
                async for update in request:
                    on_progress(update)
            return await request.result()
        except asyncio.CancelledError:
            request.cancel()
            raise

    def _is_stale(self, request: AnalysisRequest) -> bool:
        return request.cancel_requested or request.generation != self._generation

    async def _run(self, request: AnalysisRequest, timeout_s: float) -> None:
        try:
            async with self._lock:
                if self._is_stale(request):
                    request._finish(dataclasses.replace(request.latest, status=AnalysisStatus.CANCELLED))
                    return
                request._finish(await self._search(request, timeout_s))
        except asyncio.CancelledError:
            request._finish(dataclasses.replace(request.latest, status=AnalysisStatus.CANCELLED))
            raise
        except EngineUnavailableError:
            request._finish(EngineAnalysis.empty(request.fen))
        except InvalidPositionError as e:
            logger.warning("Cannot analyse an invalid position.", fen=request.fen, error=str(e))
            request._finish(EngineAnalysis.empty(request.fen))
        except chess.engine.EngineTerminatedError as e:
            self._handle_crash(EngineCrashedError(f"Engine process terminated: {e}", engine=self._engine))
            request._finish(EngineAnalysis.empty(request.fen))
        except chess.engine.EngineError as e:
            logger.error("Engine rejected the analysis.", fen=request.fen, error=str(e))
            request._finish(EngineAnalysis.empty(request.fen))

    async def _search(self, request: AnalysisRequest, timeout_s: float) -> EngineAnalysis:
        """Runs one search to completion, timeout or cancellation. Caller holds the lock."""
        engine = self._ensure_engine_ready()
        try:
            board = chess.Board(request.fen)
        except ValueError as e:
            raise InvalidPositionError(f"Invalid FEN '{request.fen}': {e}") from e

        deadline = asyncio.get_running_loop().time() + timeout_s
        try:
            search = await asyncio.wait_for(
                engine.analysis(board, chess.engine.Limit(depth=request.depth)), timeout=timeout_s
            )
        except asyncio.TimeoutError:
            logger.warning("Engine did not start the search in time.", fen=request.fen)
            return dataclasses.replace(request.latest, status=AnalysisStatus.TIMEOUT)

        throttle = ProgressThrottle(
            self._analysis_settings.progress_depth_step,
            self._analysis_settings.progress_depth_floor,
        )
        analysis = request.latest

        try:
            while True:
                info = await self._next_info(search, request, deadline)
                if info is None:
                    await self._stop_search(search)
                    return dataclasses.replace(analysis, status=AnalysisStatus.CANCELLED)

                updated = engine_info.apply_info(analysis, info, self._analysis_settings.mate_evaluation)
                if updated is None:
                    continue
                analysis = updated
                request._observe(analysis)
                if throttle.should_notify(analysis.depth):
                    request._publish(analysis)
        except chess.engine.AnalysisComplete:
            return engine_info.apply_bestmove(analysis, await search.wait())
        except EngineTimeoutError:
            logger.warning("Analysis timed out; returning best partial result.",
                           fen=request.fen, depth=analysis.depth, timeout_s=timeout_s)
            await self._stop_search(search)
            return dataclasses.replace(analysis, status=AnalysisStatus.TIMEOUT)

    async def _next_info(
        self, search: chess.engine.AnalysisResult, request: AnalysisRequest, deadline: float
    ) -> Optional[chess.engine.InfoDict]:
        """
        Returns the next engine update of `search`, or None once `request` is stale.

        Raises:
            chess.engine.AnalysisComplete: The engine has sent `bestmove`.
            EngineTimeoutError: The deadline passed first.
        """
        if self._is_stale(request):
            return None
        remaining = deadline - asyncio.get_running_loop().time()
        if remaining <= 0:
            raise EngineTimeoutError("Search deadline reached.", engine=self._engine)
        if not search.would_block():
            return await search.get()

        next_info = asyncio.ensure_future(search.get())
        cancelled = asyncio.ensure_future(request._wait_cancel_requested())
        try:
            await asyncio.wait({next_info, cancelled}, timeout=remaining, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancelled.cancel()
            if not next_info.done():
                next_info.cancel()

        if self._is_stale(request):
            if next_info.done() and not next_info.cancelled():
                next_info.exception()  # consumed; the search is being abandoned
            return None
        if next_info.done():
            return next_info.result()
        raise EngineTimeoutError("Search deadline reached.", engine=self._engine)

    async def _stop_search(self, search: chess.engine.AnalysisResult) -> None:
        """Sends `stop` and waits for the engine's `bestmove`, bounded by the sync timeout."""
        search.stop()
        try:
            await asyncio.wait_for(asyncio.shield(search.wait()), timeout=self._engine_settings.sync_timeout_s)
        except asyncio.TimeoutError:
            logger.warning("Engine did not acknowledge stop in time.")

    def _ensure_engine_ready(self) -> chess.engine.UciProtocol:
        """Raises an error if the session is closed, uninitialized or the engine has crashed."""
        if not self.is_ready or self._engine is None:
            raise EngineUnavailableError("Engine is not initialized or has failed.")
        return self._engine

    def _handle_crash(self, error: EngineCrashedError) -> None:
        if self._crashed:
            return
        self._crashed = True
        self._ready = False
        metrics.ENGINE_CRASHES_TOTAL.inc()
        logger.error("Engine process crashed; call initialize() to restart it.", error=str(error))
        if self._on_crash is not None:
            self._on_crash(error)

    def _on_request_done(self, request: AnalysisRequest, task: asyncio.Task) -> None:
        # Covers requests cancelled before their task ever ran.
        request._finish(dataclasses.replace(request.latest, status=AnalysisStatus.CANCELLED))
        status = request.latest.status
        metrics.ANALYSES_TOTAL.labels(outcome=status.value).inc()
        metrics.ENGINE_ANALYSIS_DURATION_SECONDS.observe(asyncio.get_running_loop().time() - request.started_at)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Analysis task failed.", fen=request.fen, error=repr(task.exception()))
