"""Capability-gated access to device resources such as the camera."""

from __future__ import annotations

import logging
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

CAMERA = "camera"
MICROPHONE = "microphone"

UNSUPPORTED_MESSAGES = {
    CAMERA: "Camera is not available. Please use the Upload Photo option.",
    MICROPHONE: "Voice input is not supported here. Please type your message.",
}


class CapabilityUnavailableError(RuntimeError):
    """Raised when a device capability is missing or cannot be acquired."""

    def __init__(self, capability: str, message: str | None = None) -> None:
        super().__init__(
            message
            or UNSUPPORTED_MESSAGES.get(capability, f"{capability} is not available")
        )
        self.capability = capability


class DeviceHandle(Protocol):
    def release(self) -> None: ...


class CameraHandle(DeviceHandle, Protocol):
    def capture_jpeg(self) -> bytes: ...


class OpenCVCamera:
    """A USB camera opened through OpenCV, held until released."""

    def __init__(self, camera_index: int = 0) -> None:
        try:
            import cv2
        except ImportError:
            raise CapabilityUnavailableError(
                CAMERA, "opencv-python is required for camera capture"
            ) from None

        self._cv2 = cv2
        self._camera_index = camera_index
        self._capture = cv2.VideoCapture(camera_index)
        if not self._capture.isOpened():
            self._capture.release()
            raise CapabilityUnavailableError(
                CAMERA, f"Could not open camera {camera_index}. Check the connection."
            )

    def capture_jpeg(self) -> bytes:
        """Read one frame and return it JPEG-encoded."""
        ok, frame = self._capture.read()
        if not ok or frame is None:
            raise RuntimeError(f"could not read a frame from camera {self._camera_index}")
        encoded_ok, buffer = self._cv2.imencode(".jpg", frame)
        if not encoded_ok:
            raise RuntimeError("could not encode camera frame as JPEG")
        return buffer.tobytes()

    def release(self) -> None:
        self._capture.release()


class DeviceRegistry:
    """Hands out device capabilities and tracks which ones are held.

    A capability with no registered factory is reported as unsupported.
    Every successful :meth:`acquire` must be paired with :meth:`release`.
    """

    def __init__(
        self, factories: dict[str, Callable[[], DeviceHandle]] | None = None
    ) -> None:
        self._factories = dict(factories or {})
        self._held: dict[str, DeviceHandle] = {}

    def supports(self, capability: str) -> bool:
        return capability in self._factories

    def is_held(self, capability: str) -> bool:
        return capability in self._held

    def get(self, capability: str) -> DeviceHandle | None:
        return self._held.get(capability)

    def acquire(self, capability: str) -> DeviceHandle:
        held = self._held.get(capability)
        if held is not None:
            return held

        factory = self._factories.get(capability)
        if factory is None:
            raise CapabilityUnavailableError(capability)

        try:
            handle = factory()
        except CapabilityUnavailableError:
            raise
        except Exception as exc:
            logger.warning("failed to acquire %s: %s", capability, exc)
            raise CapabilityUnavailableError(capability) from exc

        self._held[capability] = handle
        logger.info("device acquired", extra={"capability": capability})
        return handle

    def release(self, capability: str) -> None:
        handle = self._held.pop(capability, None)
        if handle is None:
            return
        try:
            handle.release()
        finally:
            logger.info("device released", extra={"capability": capability})

    def release_all(self) -> None:
        for capability in list(self._held):
            self.release(capability)
