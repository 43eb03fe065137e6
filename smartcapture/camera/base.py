from abc import ABC, abstractmethod

import numpy as np


class BaseCameraDevice(ABC):
    """Contract for camera hardware adapters."""

    @abstractmethod
    def open(self) -> None:
        """Acquire the device.

        Raises:
            HardwareUnavailableError: if no device can be opened.
            CameraPermissionError: if access is denied.
        """

    @abstractmethod
    def read_frame(self) -> np.ndarray:
        """Return the latest BGR frame.

        Raises:
            HardwareUnavailableError: if the device stops delivering frames.
        """

    @abstractmethod
    def release(self) -> None:
        """Release the device. Must be safe to call more than once."""

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Whether the device is currently acquired."""
