"""Optical beat detection from IR samples (peripheral beat amplitude method).

All arithmetic reproduces the fixed-width integer behaviour of the reference
filter: 16-bit inputs and outputs, 32-bit accumulators.
"""

FIR_COEFFS = (172, 321, 579, 927, 1360, 1858, 2390, 2916, 3391, 3768, 4012, 4096)

_BUFFER_SIZE = 32
_BUFFER_MASK = _BUFFER_SIZE - 1


def _wrap(value: int, bits: int) -> int:
    """Interpret ``value`` as a two's-complement integer of ``bits`` bits."""
    span = 1 << bits
    value &= span - 1
    if value >= span >> 1:
        value -= span
    return value


def _int16(value: int) -> int:
    return _wrap(value, 16)


def _int32(value: int) -> int:
    return _wrap(value, 32)


def mul16(x: int, y: int) -> int:
    """Multiply two 16-bit signed integers into a 32-bit signed result."""
    return _int32(_int16(x) * _int16(y))


class DCEstimator:
    """Running DC average of an unsigned 16-bit signal (alpha = 1/16)."""

    def __init__(self, register: int = 0) -> None:
        self.register = _int32(register)

    def update(self, x: int) -> int:
        """Feed one sample and return the current DC estimate."""
        x &= 0xFFFF
        delta = _int32((x << 15) - self.register)
        self.register = _int32(self.register + (delta >> 4))
        return _int16(self.register >> 15)


class LowPassFIR:
    """23-tap symmetric low-pass FIR filter over a 32-entry ring buffer."""

    def __init__(self) -> None:
        self.buffer = [0] * _BUFFER_SIZE
        self.offset = 0

    def filter(self, din: int) -> int:
        """Push one sample and return the filtered output."""
        offset = self.offset
        buf = self.buffer
        buf[offset] = _int16(din)

        z = mul16(FIR_COEFFS[11], buf[(offset - 11) & _BUFFER_MASK])
        for i, coeff in enumerate(FIR_COEFFS[:11]):
            pair = buf[(offset - i) & _BUFFER_MASK] + buf[(offset - 22 + i) & _BUFFER_MASK]
            z = _int32(z + mul16(coeff, pair))

        self.offset = (offset + 1) % _BUFFER_SIZE
        return _int16(z >> 15)


class BeatDetector:
    """Detects heart beats as rising zero crossings of the filtered AC signal."""

    def __init__(self) -> None:
        self.ac_max = 20
        self.ac_min = -20
        self.signal_current = 0
        self.signal_previous = 0
        self.signal_min = 0
        self.signal_max = 0
        self.average_estimated = 0
        self.positive_edge = False
        self.negative_edge = False
        self.dc_estimator = DCEstimator()
        self.fir = LowPassFIR()

    def check_for_beat(self, sample: int) -> bool:
        """Process one IR sample; return True when a beat is detected."""
        sample = _int32(sample)
        beat_detected = False

        self.signal_previous = self.signal_current
        self.average_estimated = self.dc_estimator.update(sample)
        self.signal_current = self.fir.filter(sample - self.average_estimated)

        previous = self.signal_previous
        current = self.signal_current

        if previous < 0 <= current:
            self.ac_max = self.signal_max
            self.ac_min = self.signal_min
            self.positive_edge = True
            self.negative_edge = False
            self.signal_max = 0
            swing = self.ac_max - self.ac_min
            if 20 < swing < 1000:
                beat_detected = True

        if previous > 0 >= current:
            self.positive_edge = False
            self.negative_edge = True
            self.signal_min = 0

        if self.positive_edge and current > previous:
            self.signal_max = current

        if self.negative_edge and current < previous:
            self.signal_min = current

        return beat_detected