"""Capture loop connecting the audio source, classifier and alert dispatcher.

One loop thread captures a window on a fixed cadence and hands active
windows to a classification thread pool. Completed classifications are
dispatched from the loop thread in capture order, so the dispatcher (and
through it the history store) only ever has one writer.
"""
from __future__ import annotations

import itertools
import logging
import threading
import time
from collections import deque
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import Callable, Deque, Optional

import numpy as np

from hearo.audio.ring_buffer import RingBuffer
from hearo.audio.sources import AudioSource
from hearo.config import AppConfig
from hearo.model.classifier import Classifier
from hearo.system.decision_policy import DecisionPolicy
from hearo.system.dispatcher import AlertDispatcher
from hearo.system.errors import AcquisitionError
from hearo.system.models import Alert, Classification, Severity
from hearo.system.state import AppState, MonitorState, Screen, StateMachine
from hearo.utils.constants import AUDIO
from hearo.utils.helpers import audio_level, rms

LOGGER = logging.getLogger(__name__)

LocationProvider = Callable[[str], Optional[str]]


@dataclass
class PendingWindow:
    seq: int
    captured_at: float
    submitted: float
    future: "Future[Classification]"


class SoundMonitor:
    def __init__(
        self,
        source: AudioSource,
        classifier: Classifier,
        dispatcher: AlertDispatcher,
        config: Optional[AppConfig] = None,
        policy: Optional[DecisionPolicy] = None,
        app_state: Optional[AppState] = None,
        location_provider: Optional[LocationProvider] = None,
        on_alert: Optional[Callable[[Alert, float], None]] = None,
    ) -> None:
        self.source = source
        self.classifier = classifier
        self.dispatcher = dispatcher
        self.config = config or AppConfig()
        self.policy = policy or DecisionPolicy(self.config.min_confidence, self.config.cooldown_s)
        self.app_state = app_state
        self.location_provider = location_provider
        self.on_alert = on_alert
        self.machine = StateMachine()

        self._ring = RingBuffer(max(AUDIO.ring_buffer_size, 2 * self.config.window_samples))
        self._pending: Deque[PendingWindow] = deque()
        self._seq = itertools.count()
        self._stopping = threading.Event()
        self._dispatch_lock = threading.Lock()
        self._shutdown_lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._thread: Optional[threading.Thread] = None
        self._closed = False
        self._captured_samples = 0

        self.windows_captured = 0
        self.windows_submitted = 0
        self.alerts_dispatched = 0

    @property
    def state(self) -> MonitorState:
        return self.machine.state

    @property
    def capture_time(self) -> float:
        """Seconds of audio captured so far."""
        return self._captured_samples / float(self.source.sample_rate)

    @property
    def in_flight(self) -> int:
        return len(self._pending)

    # ------------------------------------------------------------------ lifecycle

    def start(self) -> None:
        """Open the source here, then capture on a background thread.

        Raises AcquisitionError if the audio input cannot be opened.
        """
        self._open()
        self._thread = threading.Thread(target=self._run_loop, name="hearo-capture", daemon=True)
        self._thread.start()

    def run(self) -> None:
        """Capture in the calling thread until stopped or the source runs out."""
        self._open()
        self._run_loop()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop capturing. No history mutation happens after this returns."""
        self._stopping.set()
        # Waits out a dispatch that is already underway; later ones see the flag.
        with self._dispatch_lock:
            pass
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._shutdown()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the background loop ends; True if it did."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def _open(self) -> None:
        if self.state is not MonitorState.IDLE:
            raise RuntimeError(f"monitor cannot start from state {self.state.value}")
        try:
            self.source.open()
        except AcquisitionError as exc:
            LOGGER.error("Audio input unavailable: %s", exc)
            self.machine.transition(MonitorState.STOPPED)
            if self.app_state is not None:
                self.app_state.listening = False
                self.app_state.last_error = str(exc)
            raise
        self._executor = ThreadPoolExecutor(
            max_workers=self.config.max_workers, thread_name_prefix="hearo-classify"
        )
        self.machine.transition(MonitorState.LISTENING)
        if self.app_state is not None:
            self.app_state.listening = True
            self.app_state.last_error = None
        LOGGER.info("Listening (capture every %.2fs)", self.config.capture_interval_s)

    def _run_loop(self) -> None:
        try:
            self._loop()
        finally:
            self._shutdown()

    def _loop(self) -> None:
        interval = self.config.capture_interval_s
        next_tick = time.monotonic() + interval
        while not self._stopping.is_set():
            delay = next_tick - time.monotonic()
            if delay > 0 and self._stopping.wait(delay):
                break
            next_tick += interval
            try:
                self.tick()
            except Exception:
                if self._stopping.is_set():
                    break
                LOGGER.exception("Capture window failed")
                self.machine.recover()
            if self.source.exhausted:
                self._drain(block=True)
                break

    def _shutdown(self) -> None:
        with self._shutdown_lock:
            if self._closed:
                return
            self._closed = True
        self._stopping.set()
        self.machine.transition(MonitorState.STOPPED)
        for pending in list(self._pending):
            pending.future.cancel()
        self._pending.clear()
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
        try:
            self.source.close()
        except Exception:
            LOGGER.warning("Closing audio source failed", exc_info=True)
        if self.app_state is not None:
            self.app_state.listening = False
            self.app_state.processing = 0
        LOGGER.info(
            "Stopped after %d windows (%d classified, %d alerts)",
            self.windows_captured,
            self.windows_submitted,
            self.alerts_dispatched,
        )

    # ------------------------------------------------------------------ per window

    def tick(self) -> Optional[int]:
        """Run one capture cycle; return the sequence number if a window was submitted."""
        self.machine.transition(MonitorState.CAPTURING)
        for chunk in self.source.drain():
            self._ring.write(chunk)
            self._captured_samples += len(chunk)

        seq = None
        window = self._ring.read(self.config.window_samples)
        if window is not None:
            self.windows_captured += 1
            level = rms(window)
            if self.app_state is not None:
                self.app_state.audio_level = audio_level(level)
            if level >= self.config.activity_threshold:
                seq = self._submit(window)
            else:
                LOGGER.debug("Quiet window at %.2fs (rms %.4f)", self.capture_time, level)

        self.machine.transition(MonitorState.DISPATCHING)
        self._drain(block=False)
        self.machine.transition(MonitorState.LISTENING)
        return seq

    def _submit(self, window: np.ndarray) -> int:
        seq = next(self._seq)
        self.machine.transition(MonitorState.CLASSIFYING)
        future = self._executor.submit(self.classifier.classify, window)
        self._pending.append(PendingWindow(seq, self.capture_time, time.monotonic(), future))
        self.windows_submitted += 1
        if self.app_state is not None:
            self.app_state.processing = len(self._pending)
        LOGGER.debug("Window %d submitted at %.2fs", seq, self.capture_time)
        return seq

    def _drain(self, block: bool) -> None:
        """Dispatch finished windows strictly in capture order.

        A window still running holds back the ones behind it until it
        finishes or exceeds ``window_timeout_s``, then it is abandoned.
        """
        timeout = self.config.window_timeout_s
        while self._pending and not self._stopping.is_set():
            head = self._pending[0]
            if not head.future.done():
                remaining = timeout - (time.monotonic() - head.submitted)
                if remaining > 0:
                    if not block:
                        break
                    try:
                        head.future.result(timeout=remaining)
                    except FutureTimeout:
                        pass
                    except Exception:
                        pass  # reported by _complete
                if not head.future.done():
                    head.future.cancel()
                    self._pending.popleft()
                    LOGGER.warning("Window %d abandoned after %.1fs without a classification", head.seq, timeout)
                    continue
            self._pending.popleft()
            self._complete(head)
        if self.app_state is not None:
            self.app_state.processing = len(self._pending)

    def _complete(self, pending: PendingWindow) -> Optional[Alert]:
        try:
            classification = pending.future.result()
        except CancelledError:
            return None
        except Exception as exc:
            LOGGER.warning("Window %d could not be classified: %s", pending.seq, exc)
            return None

        if not self.policy.should_alert(classification, at=pending.captured_at):
            LOGGER.debug(
                "Window %d suppressed: %s (%.2f)", pending.seq, classification.label, classification.confidence
            )
            return None

        location = None
        if self.location_provider is not None:
            try:
                location = self.location_provider(classification.label)
            except Exception:
                LOGGER.warning("Location sensor failed for %s", classification.label, exc_info=True)

        with self._dispatch_lock:
            if self._stopping.is_set():
                return None
            alert = self.dispatcher.dispatch(classification, location=location)
        self.alerts_dispatched += 1
        if self.app_state is not None and alert.severity is Severity.CRITICAL:
            self.app_state.show(Screen.EMERGENCY)
        if self.on_alert is not None:
            try:
                self.on_alert(alert, pending.captured_at)
            except Exception:
                LOGGER.warning("Alert callback failed for alert #%d", alert.id, exc_info=True)
        return alert
