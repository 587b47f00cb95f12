import numpy as np

from ambient_player.domain.sensors import SensorStatus
from ambient_player.domain.signals import Coordinates
from ambient_player.integrations.camera import CameraSensor
from ambient_player.integrations.location import ConfiguredLocationSensor
from ambient_player.integrations.microphone import MicrophoneSensor


class _Logger:
    def __init__(self):
        self.messages = []

    def _log(self, message, *args):
        self.messages.append(message % args if args else message)

    debug = info = warning = error = _log


class _FakeStream:
    def __init__(self, callback, finished_callback=None, fail_start=None):
        self.callback = callback
        self.finished_callback = finished_callback
        self.fail_start = fail_start
        self.active = False
        self.started = False
        self.stopped = False
        self.closed = False

    def start(self):
        if self.fail_start is not None:
            raise self.fail_start
        self.started = True
        self.active = True

    def stop(self):
        self.stopped = True
        self.active = False

    def close(self):
        self.closed = True


class _FakeSoundDevice:
    def __init__(self, fail_start=None):
        self.fail_start = fail_start
        self.streams = []
        self.kwargs = []

    def InputStream(self, **kwargs):
        self.kwargs.append(kwargs)
        stream = _FakeStream(
            kwargs["callback"], kwargs.get("finished_callback"), self.fail_start
        )
        self.streams.append(stream)
        return stream


class _FakeCapture:
    def __init__(self, opened=True, frames=None):
        self.opened = opened
        self.frames = list(frames or [])
        self.released = False

    def isOpened(self):
        return self.opened

    def read(self):
        if not self.frames:
            return False, None
        return True, self.frames.pop(0)

    def release(self):
        self.released = True


class _FakeCv2:
    INTER_AREA = 3
    COLOR_BGR2RGB = 4

    def __init__(self, capture):
        self.capture = capture
        self.opened_indexes = []
        self.resize_calls = []

    def VideoCapture(self, index):
        self.opened_indexes.append(index)
        return self.capture

    def resize(self, frame, size, interpolation=None):
        self.resize_calls.append((size, interpolation))
        return np.zeros((size[1], size[0], 3), dtype=np.uint8) + frame[0, 0]

    def cvtColor(self, frame, code):
        assert code == self.COLOR_BGR2RGB
        return frame[..., ::-1]


def test_microphone_streams_latest_block_once():
    sd = _FakeSoundDevice()
    logger = _Logger()
    microphone = MicrophoneSensor(logger, sample_rate=48000, frame_size=1024, sd_module=sd)

    assert microphone.request_access() is SensorStatus.ACTIVE
    assert microphone.request_access() is SensorStatus.ACTIVE
    assert len(sd.streams) == 1
    assert sd.kwargs[0]["samplerate"] == 48000
    assert sd.kwargs[0]["blocksize"] == 1024
    assert sd.kwargs[0]["channels"] == 1

    callback = sd.streams[0].callback
    callback(np.full((1024, 1), 0.25, dtype=np.float32), 1024, None, "input overflow")
    callback(np.full((1024, 1), 0.5, dtype=np.float32), 1024, None, "input overflow")

    frame = microphone.read_frame()
    assert frame.shape == (1024,)
    assert float(frame[0]) == 0.5
    assert microphone.read_frame() is None
    assert sum("input overflow" in line for line in logger.messages) == 1


def test_microphone_stop_is_idempotent():
    sd = _FakeSoundDevice()
    microphone = MicrophoneSensor(_Logger(), sd_module=sd)
    microphone.request_access()

    microphone.stop()
    microphone.stop()

    stream = sd.streams[0]
    assert stream.stopped and stream.closed
    assert microphone.status is SensorStatus.IDLE
    assert microphone.read_frame() is None


class _Clock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


def test_microphone_inactive_stream_moves_to_error():
    sd = _FakeSoundDevice()
    logger = _Logger()
    microphone = MicrophoneSensor(logger, sd_module=sd)
    microphone.request_access()
    stream = sd.streams[0]

    stream.callback(np.full((2048, 1), 0.5, dtype=np.float32), 2048, None, None)
    assert microphone.read_frame() is not None

    stream.active = False
    assert microphone.read_frame() is None
    assert microphone.status is SensorStatus.ERROR
    assert "no longer active" in microphone.message
    assert stream.closed
    assert microphone.read_frame() is None


def test_microphone_finished_callback_moves_to_error():
    sd = _FakeSoundDevice()
    microphone = MicrophoneSensor(_Logger(), sd_module=sd)
    microphone.request_access()

    sd.streams[0].finished_callback()

    assert microphone.read_frame() is None
    assert microphone.status is SensorStatus.ERROR
    assert microphone.stream is None


def test_microphone_silent_stream_times_out():
    sd = _FakeSoundDevice()
    clock = _Clock()
    microphone = MicrophoneSensor(
        _Logger(), stall_timeout_seconds=1.0, sd_module=sd, clock=clock
    )
    microphone.request_access()

    clock.now += 0.5
    assert microphone.read_frame() is None
    assert microphone.status is SensorStatus.ACTIVE

    clock.now += 0.6
    assert microphone.read_frame() is None
    assert microphone.status is SensorStatus.ERROR

    microphone.stop()
    assert microphone.request_access() is SensorStatus.ACTIVE
    assert len(sd.streams) == 2


def test_microphone_maps_device_errors_to_status():
    denied = MicrophoneSensor(_Logger(), sd_module=_FakeSoundDevice(PermissionError("nope")))
    missing = MicrophoneSensor(
        _Logger(), sd_module=_FakeSoundDevice(RuntimeError("Error querying device -1"))
    )
    broken = MicrophoneSensor(_Logger(), sd_module=_FakeSoundDevice(RuntimeError("host error")))

    assert denied.request_access() is SensorStatus.DENIED
    assert missing.request_access() is SensorStatus.UNSUPPORTED
    assert broken.request_access() is SensorStatus.ERROR
    assert "host error" in broken.message


def test_camera_downsamples_to_rgb_and_fails_on_lost_frames():
    bgr = np.zeros((480, 640, 3), dtype=np.uint8)
    bgr[..., 0] = 200  # blue channel in BGR order
    capture = _FakeCapture(frames=[bgr])
    cv2 = _FakeCv2(capture)
    camera = CameraSensor(_Logger(), index=2, sample_size=24, cv2_module=cv2)

    assert camera.request_access() is SensorStatus.ACTIVE
    assert camera.request_access() is SensorStatus.ACTIVE
    assert cv2.opened_indexes == [2]

    pixels = camera.read_frame()
    assert pixels.shape == (24, 24, 3)
    assert tuple(pixels[0, 0]) == (0, 0, 200)
    assert cv2.resize_calls == [((24, 24), cv2.INTER_AREA)]

    assert camera.read_frame() is None
    assert camera.status is SensorStatus.ERROR
    assert capture.released


def test_camera_missing_device_is_unsupported_and_stop_is_idempotent():
    capture = _FakeCapture(opened=False)
    camera = CameraSensor(_Logger(), cv2_module=_FakeCv2(capture))

    assert camera.request_access() is SensorStatus.UNSUPPORTED
    assert capture.released
    assert camera.read_frame() is None

    camera.stop()
    camera.stop()
    assert camera.status is SensorStatus.IDLE


def test_location_sensor_reports_configured_coordinates():
    logger = _Logger()
    empty = ConfiguredLocationSensor(logger)
    assert empty.request_access() is SensorStatus.UNSUPPORTED
    assert empty.coordinates is None

    coordinates = Coordinates(51.5072, -0.1276, 30)
    located = ConfiguredLocationSensor(logger, coordinates)
    assert located.request_access() is SensorStatus.ACTIVE
    assert located.coordinates == coordinates

    assert located.update(coordinates) is False
    assert located.update(None) is True
    assert located.status is SensorStatus.UNSUPPORTED

    located.stop()
    assert located.status is SensorStatus.IDLE
