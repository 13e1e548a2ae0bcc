"""
Event processor state machine.

States:
- idle: Waiting for the next queued event
- processing: Applying the result of a device event
- terminated: Defaults restored after a shutdown; no further events

Device callbacks and signal handlers only enqueue typed events. A single
worker thread drains the queue in FIFO order and is the only code that
touches the override state or calls into the OS settings.
"""

import logging
import queue
import threading
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Protocol, Union

from .errors import ApplyError
from .overrides import Dimension, Overrides

log = logging.getLogger(__name__)

# 128 + SIGTERM: tells the caller we were stopped by a signal, not a normal exit
SHUTDOWN_EXIT_STATUS = 143


class ProcessorState(Enum):
    IDLE = auto()
    PROCESSING = auto()
    TERMINATED = auto()


@dataclass(frozen=True)
class StartupSnapshot:
    """OS settings observed before any override was applied."""
    input_source: str
    natural_scroll: bool


@dataclass(frozen=True)
class DeviceAdded:
    device: str


@dataclass(frozen=True)
class DeviceRemoved:
    device: str


@dataclass(frozen=True)
class Shutdown:
    pass


Event = Union[DeviceAdded, DeviceRemoved, Shutdown]


class InputSourceApplier(Protocol):
    def set_active(self, input_source: str) -> None: ...


class NaturalScrollApplier(Protocol):
    def set(self, natural_scroll: bool) -> None: ...


class EventProcessor:
    """
    Serializes device events and keeps OS settings in sync with overrides.

    After every device event both dimensions are re-resolved and pushed to
    the OS, falling back to the startup snapshot when no override qualifies.
    """

    def __init__(
        self,
        overrides: Overrides,
        snapshot: StartupSnapshot,
        input_sources: InputSourceApplier,
        natural_scroll: NaturalScrollApplier,
    ):
        self._overrides = overrides
        self._snapshot = snapshot
        self._input_sources = input_sources
        self._natural_scroll = natural_scroll

        self._queue: "queue.Queue[Event]" = queue.Queue()
        self._state = ProcessorState.IDLE
        self._exit_status: Optional[int] = None
        self._terminated = threading.Event()
        self._worker_thread: Optional[threading.Thread] = None

    @property
    def state(self) -> ProcessorState:
        """Current processor state."""
        return self._state

    @property
    def snapshot(self) -> StartupSnapshot:
        return self._snapshot

    @property
    def exit_status(self) -> Optional[int]:
        """Process exit status once terminated, otherwise None."""
        return self._exit_status

    # === Producers (any thread) ===

    def _enqueue(self, event: Event):
        if self._terminated.is_set():
            log.debug(f"Dropping {event} after shutdown")
            return
        self._queue.put(event)

    def queue_add_device(self, device: str):
        log.debug(f"Queueing matching device: {device}")
        self._enqueue(DeviceAdded(device))

    def queue_remove_device(self, device: str):
        log.debug(f"Queueing removed device: {device}")
        self._enqueue(DeviceRemoved(device))

    def queue_shutdown(self):
        log.debug("Queueing shutdown.")
        self._enqueue(Shutdown())

    # === Worker ===

    def _apply(self, dimension: Dimension, value, source: str):
        log.info(f"Setting {dimension.name.lower()} to {source}: {value}")
        try:
            if dimension is Dimension.INPUT_SOURCE:
                self._input_sources.set_active(value)
            else:
                self._natural_scroll.set(value)
        except ApplyError as e:
            log.error(f"Failed to set {dimension.name.lower()}: {e}")
        except Exception:
            # Keep going so the other dimension is still applied
            log.exception(f"Unexpected error setting {dimension.name.lower()}")

    def _update(self):
        """Push the resolved settings (or the startup defaults) to the OS."""
        input_source = self._overrides.resolve(Dimension.INPUT_SOURCE)
        if input_source is not None:
            self._apply(Dimension.INPUT_SOURCE, input_source, "override")
        else:
            self._apply(Dimension.INPUT_SOURCE, self._snapshot.input_source, "default")

        natural_scroll = self._overrides.resolve(Dimension.NATURAL_SCROLL)
        if natural_scroll is not None:
            self._apply(Dimension.NATURAL_SCROLL, natural_scroll, "override")
        else:
            self._apply(Dimension.NATURAL_SCROLL, self._snapshot.natural_scroll, "default")

    def _restore_defaults(self):
        self._apply(Dimension.INPUT_SOURCE, self._snapshot.input_source, "default")
        self._apply(Dimension.NATURAL_SCROLL, self._snapshot.natural_scroll, "default")

    def _handle(self, event: Event):
        """Run one transition. Must only be called from the worker."""
        if self._state is ProcessorState.TERMINATED:
            log.debug(f"Ignoring {event}, processor terminated")
            return

        self._state = ProcessorState.PROCESSING
        if isinstance(event, DeviceAdded):
            log.debug(f"Processing matching device: {event.device}")
            self._overrides.add_device(event.device)
            self._update()
            log.debug(f"Processed matching device: {event.device}")
        elif isinstance(event, DeviceRemoved):
            log.debug(f"Processing removed device: {event.device}")
            self._overrides.remove_device(event.device)
            self._update()
            log.debug(f"Processed removed device: {event.device}")
        elif isinstance(event, Shutdown):
            log.debug("Processing shutdown.")
            try:
                self._restore_defaults()
            finally:
                self._state = ProcessorState.TERMINATED
                self._exit_status = SHUTDOWN_EXIT_STATUS
                self._terminated.set()
            log.debug("Processed shutdown.")
            return
        self._state = ProcessorState.IDLE

    def process_pending(self):
        """
        Drain queued events on the calling thread.

        For single-threaded use only; do not combine with start().
        """
        while not self._terminated.is_set():
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                return
            self._handle(event)

    def _worker_loop(self):
        """Worker thread that processes queued events until shutdown."""
        log.info("Event worker thread started")
        while not self._terminated.is_set():
            event = self._queue.get()
            try:
                self._handle(event)
            except Exception:
                log.exception(f"Error processing {event}")
                self._state = ProcessorState.IDLE
            finally:
                self._queue.task_done()
        log.info("Event worker thread stopped")

    def start(self):
        """Start the worker thread."""
        if self._worker_thread is not None:
            return
        self._worker_thread = threading.Thread(
            target=self._worker_loop, name='switcheroo-events', daemon=True
        )
        self._worker_thread.start()

    def wait(self, timeout: Optional[float] = None) -> Optional[int]:
        """
        Block until the processor terminates.

        Returns the exit status, or None if `timeout` elapsed first.
        """
        if not self._terminated.wait(timeout):
            return None
        if self._worker_thread is not None:
            self._worker_thread.join(timeout=1.0)
        return self._exit_status
