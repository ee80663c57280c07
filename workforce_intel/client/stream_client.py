"""
client/stream_client.py
──────────────────────────────────────────────────────────────────────────────
Blocking consumer for POST /api/analyze/stream.

  client = StreamingAnalysisClient("http://localhost:8000", on_state=render)
  final = client.analyze("Data Scientist", CapabilityLevel.BOLD)

Each analyze() call:
  1. aborts the stream a previous call may still be reading
  2. replaces the state with a fresh ``connecting`` state
  3. reads SSE frames as they arrive and folds them through apply_frame()
  4. calls ``on_state`` after every change

cancel() may be called from another thread (e.g. a UI button).  It closes
the open connection and returns the state to idle; a cancelled stream is not
an error.  A generation counter stops a superseded stream from writing into
the state of the request that replaced it.
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Optional

import requests

from workforce_intel.client.state import (
    AnalysisStatus,
    StreamingAnalysisState,
    apply_frame,
    initial_state,
    start,
)
from workforce_intel.domain.models import CapabilityLevel
from workforce_intel.interfaces.sse import MIMETYPE, iter_frames

logger = logging.getLogger(__name__)

_STREAM_PATH = "/api/analyze/stream"
_DEFAULT_TIMEOUT = (10, 300)   # (connect, read) seconds


class StreamingAnalysisClient:
    """Streams one analysis at a time into a StreamingAnalysisState.

    Args:
        base_url: Server root, e.g. ``http://localhost:8000``.
        session:  Optional requests.Session (tests inject a mock).
        on_state: Callback invoked with every new state.
        timeout:  requests timeout, seconds or (connect, read) tuple.
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        on_state: Optional[Callable[[StreamingAnalysisState], None]] = None,
        timeout: float | tuple[float, float] = _DEFAULT_TIMEOUT,
    ) -> None:
        self._url = base_url.rstrip("/") + _STREAM_PATH
        self._session = session or requests.Session()
        self._on_state = on_state
        self._timeout = timeout
        self._lock = threading.RLock()
        self._generation = 0
        self._response: Optional[requests.Response] = None
        self._state = initial_state()

    @property
    def state(self) -> StreamingAnalysisState:
        return self._state

    # ── Public API ─────────────────────────────────────────────────────────

    def analyze(
        self,
        job_title: str,
        capability_level: CapabilityLevel = CapabilityLevel.MODERATE,
    ) -> StreamingAnalysisState:
        """Run one streamed analysis and return the final state.

        Transport failures end in an ``error`` state rather than raising.
        """
        with self._lock:
            self._abort_locked()
            self._generation += 1
            generation = self._generation
            self._set_locked(start(job_title, capability_level))

        body = {"jobTitle": job_title, "capabilityLevel": capability_level.value}
        try:
            response = self._session.post(
                self._url,
                json=body,
                headers={"Accept": MIMETYPE},
                stream=True,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Analysis stream connection failed: %s", exc)
            return self._fail(generation, f"Could not connect to analysis service: {exc}")

        with self._lock:
            if generation != self._generation:
                response.close()
                return self._state
            self._response = response

        try:
            if response.status_code != 200:
                return self._fail(generation, f"HTTP {response.status_code}: {response.text[:200]}")
            for payload in iter_frames(response.iter_content(chunk_size=None)):
                with self._lock:
                    if generation != self._generation:
                        break
                    self._set_locked(apply_frame(self._state, payload))
                    if self._state.is_finished:
                        break
        except (requests.RequestException, AttributeError, ValueError) as exc:
            # Closing the response from cancel() surfaces here as a read error.
            with self._lock:
                superseded = generation != self._generation
            if superseded:
                logger.debug("Superseded stream ended: %s", exc)
            else:
                logger.warning("Analysis stream interrupted: %s", exc)
                return self._fail(generation, f"Connection to analysis service lost: {exc}")
        finally:
            response.close()
            with self._lock:
                if self._response is response:
                    self._response = None

        with self._lock:
            if generation == self._generation and not self._state.is_finished:
                logger.warning("Analysis stream ended without a terminal event")
                self._set_locked(self._state.model_copy(update={
                    "status": AnalysisStatus.ERROR,
                    "error": "Analysis stream ended unexpectedly",
                }))
            return self._state

    def cancel(self) -> None:
        """Abort any open stream and return to idle."""
        with self._lock:
            self._abort_locked()
            self._generation += 1
            self._set_locked(initial_state())

    def reset(self) -> None:
        """Alias for cancel(): clears state and drops any open stream."""
        self.cancel()

    # ── Internals ──────────────────────────────────────────────────────────

    def _abort_locked(self) -> None:
        if self._response is not None:
            logger.info("Aborting in-flight analysis stream")
            self._response.close()
            self._response = None

    def _set_locked(self, state: StreamingAnalysisState) -> None:
        if state is self._state:
            return
        self._state = state
        if self._on_state is not None:
            self._on_state(state)

    def _fail(self, generation: int, message: str) -> StreamingAnalysisState:
        with self._lock:
            if generation == self._generation:
                self._set_locked(self._state.model_copy(update={
                    "status": AnalysisStatus.ERROR,
                    "error": message,
                }))
            return self._state
