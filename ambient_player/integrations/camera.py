"""Camera sensor on OpenCV that yields tiny RGB frames for scene classification."""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..domain.sensors import SensorStatus
from ..errors import SensorFault, SensorUnavailable

try:
    import cv2 as _cv2
except Exception:  # pragma: no cover - dependency optional at import time
    _cv2 = None


class CameraSensor:
    def __init__(
        self,
        logger,
        *,
        index: int = 0,
        sample_size: int = 24,
        cv2_module=None,
    ) -> None:
        self.logger = logger
        self.index = int(index)
        self.sample_size = max(1, int(sample_size))
        self._cv2 = cv2_module if cv2_module is not None else _cv2
        self.status = SensorStatus.IDLE
        self.message: Optional[str] = None
        self.capture = None

    def _open_capture(self):
        if self._cv2 is None:
            raise SensorUnavailable("Camera capture is not supported (OpenCV unavailable).")
        try:
            capture = self._cv2.VideoCapture(self.index)
        except PermissionError as exc:
            raise SensorUnavailable("Camera permission denied.", denied=True) from exc
        except Exception as exc:
            raise SensorFault(f"Camera failed to open: {exc}") from exc
        if not capture.isOpened():
            capture.release()
            raise SensorUnavailable(f"No camera found at index {self.index}.")
        return capture

    def request_access(self) -> SensorStatus:
        if self.status in (SensorStatus.REQUESTING, SensorStatus.ACTIVE):
            return self.status
        self.status = SensorStatus.REQUESTING
        self.message = None
        try:
            self.capture = self._open_capture()
        except SensorUnavailable as exc:
            self.status = SensorStatus.DENIED if exc.denied else SensorStatus.UNSUPPORTED
            self.message = str(exc)
            self.logger.warning("Camera unavailable: %s", exc)
            return self.status
        except SensorFault as exc:
            self.status = SensorStatus.ERROR
            self.message = str(exc)
            self.logger.error("Camera error: %s", exc)
            return self.status
        self.status = SensorStatus.ACTIVE
        self.logger.info("Camera %s active (%sx%s samples)", self.index, self.sample_size, self.sample_size)
        return self.status

    def _downsample(self, frame_bgr) -> np.ndarray:
        cv2 = self._cv2
        size = (self.sample_size, self.sample_size)
        small = cv2.resize(frame_bgr, size, interpolation=cv2.INTER_AREA)
        return cv2.cvtColor(small, cv2.COLOR_BGR2RGB)

    def read_frame(self) -> Optional[np.ndarray]:
        """Grab one frame as a sample_size x sample_size RGB array.

        A failed grab moves the sensor to ERROR and releases the device; it stays
        there until ``stop`` and a new ``request_access``.
        """
        if self.status is not SensorStatus.ACTIVE or self.capture is None:
            return None
        ok, frame = self.capture.read()
        if not ok or frame is None:
            self._fail(SensorFault("Camera frame capture failed."))
            return None
        return self._downsample(frame)

    def _fail(self, exc: SensorFault) -> None:
        self.logger.error("Camera error: %s", exc)
        self._release_capture()
        self.status = SensorStatus.ERROR
        self.message = str(exc)

    def _release_capture(self) -> None:
        capture, self.capture = self.capture, None
        if capture is None:
            return
        try:
            capture.release()
        except Exception as exc:
            self.logger.debug("Camera release error: %s", exc)

    def stop(self) -> None:
        was_open = self.capture is not None
        self._release_capture()
        if was_open:
            self.logger.info("Camera stopped")
        self.status = SensorStatus.IDLE
        self.message = None
