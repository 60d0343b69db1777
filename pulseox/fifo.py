"""Local sample storage filled from the sensor's on-chip FIFO."""

import time
from typing import Callable, List

from .sensor import I2C_BUFFER_LENGTH, MAX30105

#: Number of samples kept locally; the sensor itself holds up to 32.
STORAGE_SIZE = 4

#: Depth of the sensor's FIFO, used to unwrap the read/write pointers.
FIFO_DEPTH = 32

#: Bytes per channel in one FIFO record.
BYTES_PER_CHANNEL = 3

#: Only the low 18 bits of a channel reading carry data.
SAMPLE_MASK = 0x3FFFF

_DEFAULT_TIMEOUT_MS = 250
_POLL_INTERVAL_S = 0.001


class SampleReader:
    """Polls a sensor's FIFO and keeps the latest readings in a ring buffer."""

    def __init__(
        self,
        sensor: MAX30105,
        *,
        storage_size: int = STORAGE_SIZE,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if storage_size < 1:
            raise ValueError("storage size must be at least 1")
        self.sensor = sensor
        self.storage_size = storage_size
        self._red: List[int] = [0] * storage_size
        self._ir: List[int] = [0] * storage_size
        self._green: List[int] = [0] * storage_size
        self.head = 0
        self.tail = 0
        self._sleep = sleep
        self._clock = clock

    def _frame_size(self) -> int:
        leds = self.sensor.active_leds
        if not 1 <= leds <= 3:
            raise ValueError(f"active LED count must be 1 to 3, got {leds}")
        return leds * BYTES_PER_CHANNEL

    def _store(self, frame: bytes) -> None:
        self.head = (self.head + 1) % self.storage_size
        channels = [
            int.from_bytes(frame[i:i + BYTES_PER_CHANNEL], "big") & SAMPLE_MASK
            for i in range(0, len(frame), BYTES_PER_CHANNEL)
        ]
        self._red[self.head] = channels[0]
        if len(channels) > 1:
            self._ir[self.head] = channels[1]
        if len(channels) > 2:
            self._green[self.head] = channels[2]

    def check(self) -> int:
        """Read any new samples from the sensor; return how many arrived."""
        read_ptr = self.sensor.read_pointer()
        write_ptr = self.sensor.write_pointer()
        if read_ptr == write_ptr:
            return 0

        samples = write_ptr - read_ptr
        if samples < 0:
            samples += FIFO_DEPTH

        frame = self._frame_size()
        remaining = samples * frame
        while remaining > 0:
            to_get = remaining
            if to_get > I2C_BUFFER_LENGTH:
                # Request whole records only.
                to_get = I2C_BUFFER_LENGTH - I2C_BUFFER_LENGTH % frame
            remaining -= to_get
            data = self.sensor.read_fifo(to_get)
            for start in range(0, len(data) - frame + 1, frame):
                self._store(data[start:start + frame])
        return samples

    def safe_check(self, max_time_ms: int) -> bool:
        """Poll for new data for up to ``max_time_ms``; return True if some arrived."""
        start = self._clock()
        while True:
            if (self._clock() - start) * 1000 > max_time_ms:
                return False
            if self.check():
                return True
            self._sleep(_POLL_INTERVAL_S)

    def available(self) -> int:
        """Number of stored samples not yet consumed."""
        return (self.head - self.tail) % self.storage_size

    def next_sample(self) -> None:
        """Advance the tail, if any sample is available."""
        if self.available():
            self.tail = (self.tail + 1) % self.storage_size

    def red(self) -> int:
        """Most recent red reading after polling, or 0 if none arrived in time."""
        return self._red[self.head] if self.safe_check(_DEFAULT_TIMEOUT_MS) else 0

    def ir(self) -> int:
        """Most recent IR reading after polling, or 0 if none arrived in time."""
        return self._ir[self.head] if self.safe_check(_DEFAULT_TIMEOUT_MS) else 0

    def green(self) -> int:
        """Most recent green reading after polling, or 0 if none arrived in time."""
        return self._green[self.head] if self.safe_check(_DEFAULT_TIMEOUT_MS) else 0

    def fifo_red(self) -> int:
        """Red reading at the tail of the local buffer."""
        return self._red[self.tail]

    def fifo_ir(self) -> int:
        """IR reading at the tail of the local buffer."""
        return self._ir[self.tail]

    def fifo_green(self) -> int:
        """Green reading at the tail of the local buffer."""
        return self._green[self.tail]