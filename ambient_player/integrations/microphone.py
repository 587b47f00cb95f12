"""Microphone sensor on a sounddevice input stream."""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

import numpy as np

from ..domain.sensors import SensorStatus
from ..errors import SensorFault, SensorUnavailable

try:
    import sounddevice as _sd
except Exception:  # pragma: no cover - PortAudio may be missing at import time
    _sd = None


def _looks_like_missing_device(exc: Exception) -> bool:
    text = str(exc).lower()
    return "device" in text or "no default input" in text


class MicrophoneSensor:
    """Owns one input stream; the audio callback keeps only the newest block.

    ``read_frame`` never blocks: it hands out the newest block once and returns
    None until the callback delivers another. A stream that finishes, goes
    inactive, or delivers nothing for ``stall_timeout_seconds`` moves the
    sensor to ERROR and is released.
    """

    def __init__(
        self,
        logger,
        *,
        sample_rate: int = 44100,
        frame_size: int = 2048,
        device=None,
        stall_timeout_seconds: float = 1.0,
        sd_module=None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.logger = logger
        self.sample_rate = int(sample_rate)
        self.frame_size = int(frame_size)
        self.device = device
        self.stall_timeout_seconds = max(0.1, float(stall_timeout_seconds))
        self._sd = sd_module if sd_module is not None else _sd
        self._clock = clock
        self.status = SensorStatus.IDLE
        self.message: Optional[str] = None
        self.stream = None
        self._lock = threading.Lock()
        self._latest: Optional[np.ndarray] = None
        self._last_block_at = 0.0
        self._stream_finished = False
        self._last_stream_status: Optional[str] = None

    def _handle_callback(self, indata, frames, time_info, status) -> None:
        block = indata[:, 0] if getattr(indata, "ndim", 1) > 1 else indata
        with self._lock:
            self._latest = np.array(block, dtype=np.float32, copy=True)
            self._last_block_at = self._clock()
        if status:
            status_str = str(status)
            if status_str != self._last_stream_status:
                self.logger.warning("Microphone stream status: %s", status_str)
                self._last_stream_status = status_str

    def _handle_finished(self) -> None:
        with self._lock:
            self._stream_finished = True

    def _open_stream(self):
        if self._sd is None:
            raise SensorUnavailable("Audio input is not supported (sounddevice unavailable).")
        try:
            stream = self._sd.InputStream(
                device=self.device,
                channels=1,
                samplerate=self.sample_rate,
                blocksize=self.frame_size,
                dtype="float32",
                callback=self._handle_callback,
                finished_callback=self._handle_finished,
            )
            stream.start()
        except PermissionError as exc:
            raise SensorUnavailable("Microphone permission denied.", denied=True) from exc
        except Exception as exc:
            if _looks_like_missing_device(exc):
                raise SensorUnavailable(f"No usable microphone: {exc}") from exc
            raise SensorFault(f"Microphone failed to start: {exc}") from exc
        return stream

    def request_access(self) -> SensorStatus:
        if self.status in (SensorStatus.REQUESTING, SensorStatus.ACTIVE):
            return self.status
        self.status = SensorStatus.REQUESTING
        self.message = None
        with self._lock:
            self._latest = None
            self._stream_finished = False
            self._last_block_at = self._clock()
        try:
            self.stream = self._open_stream()
        except SensorUnavailable as exc:
            self.status = SensorStatus.DENIED if exc.denied else SensorStatus.UNSUPPORTED
            self.message = str(exc)
            self.logger.warning("Microphone unavailable: %s", exc)
            return self.status
        except SensorFault as exc:
            self.status = SensorStatus.ERROR
            self.message = str(exc)
            self.logger.error("Microphone error: %s", exc)
            return self.status
        self.status = SensorStatus.ACTIVE
        self.logger.info(
            "Microphone active (%s Hz, %s samples per frame)",
            self.sample_rate,
            self.frame_size,
        )
        return self.status

    def _stream_failure(self) -> Optional[str]:
        if self._stream_finished:
            return "Microphone stream finished unexpectedly."
        if self.stream is not None and getattr(self.stream, "active", True) is False:
            return "Microphone stream is no longer active."
        if self._clock() - self._last_block_at > self.stall_timeout_seconds:
            return "Microphone stopped delivering audio."
        return None

    def read_frame(self) -> Optional[np.ndarray]:
        if self.status is not SensorStatus.ACTIVE:
            return None
        with self._lock:
            frame, self._latest = self._latest, None
            failure = None if frame is not None else self._stream_failure()
        if failure is not None:
            self._fail(SensorFault(failure))
        return frame

    def _fail(self, exc: SensorFault) -> None:
        self.logger.error("Microphone error: %s", exc)
        self._release_stream()
        self.status = SensorStatus.ERROR
        self.message = str(exc)

    def _release_stream(self) -> bool:
        stream, self.stream = self.stream, None
        if stream is not None:
            try:
                stream.stop()
                stream.close()
            except Exception as exc:
                self.logger.debug("Microphone stream close error: %s", exc)
        with self._lock:
            self._latest = None
        return stream is not None

    def stop(self) -> None:
        if self._release_stream():
            self.logger.info("Microphone stopped")
        self._last_stream_status = None
        self.status = SensorStatus.IDLE
        self.message = None
