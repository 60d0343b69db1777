"""Heart rate and SpO2 estimation from 100-sample IR and red buffers.

The arithmetic follows the reference integer algorithm: 32-bit wrapping
products, truncating division and arithmetic right shifts. The result is
therefore reproducible bit for bit.
"""

from dataclasses import dataclass
from typing import List, Sequence

#: Value reported for a heart rate or SpO2 that could not be computed.
INVALID = -999

#: Sampling frequency of the buffers, in Hz.
FREQ_S = 25
#: Number of samples the algorithm works on (four seconds of data).
BUFFER_SIZE = FREQ_S * 4
#: Width of the moving-average smoothing window.
MA4_SIZE = 4
#: Most peaks the detector will report.
MAX_PEAKS = 15

_MIN_THRESHOLD = 30
_MAX_THRESHOLD = 60
_PEAK_DISTANCE = 4
_MAX_RATIOS = 5
_DC_FLOOR = -16777216

#: SpO2 percentage for each red/IR ratio (ratio scaled by 100).
SPO2_TABLE = (
    95, 95, 95, 96, 96, 96, 97, 97, 97, 97, 97, 98, 98, 98, 98, 98, 99, 99, 99, 99,
    99, 99, 99, 99, 100, 100, 100, 100, 100, 100, 100, 100, 100, 100, 100, 100, 100, 100, 100, 100,
    100, 100, 100, 100, 99, 99, 99, 99, 99, 99, 99, 99, 98, 98, 98, 98, 98, 98, 97, 97,
    97, 97, 96, 96, 96, 96, 95, 95, 95, 94, 94, 94, 93, 93, 93, 92, 92, 92, 91, 91,
    90, 90, 89, 89, 89, 88, 88, 87, 87, 86, 86, 85, 85, 84, 84, 83, 82, 82, 81, 81,
    80, 80, 79, 78, 78, 77, 76, 76, 75, 74, 74, 73, 72, 72, 71, 70, 69, 69, 68, 67,
    66, 66, 65, 64, 63, 62, 62, 61, 60, 59, 58, 57, 56, 56, 55, 54, 53, 52, 51, 50,
    49, 48, 47, 46, 45, 44, 43, 42, 41, 40, 39, 38, 37, 36, 35, 34, 33, 31, 30, 29,
    28, 27, 26, 25, 23, 22, 21, 20, 19, 17, 16, 15, 14, 12, 11, 10, 9, 7, 6, 5,
    3, 2, 1,
)


def _int32(value: int) -> int:
    """Interpret ``value`` as a 32-bit two's-complement integer."""
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


def _cdiv(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    quotient = abs(a) // abs(b)
    return -quotient if (a < 0) != (b < 0) else quotient


@dataclass(frozen=True)
class Spo2Result:
    """Outcome of one heart rate / SpO2 computation."""

    spo2: int
    spo2_valid: bool
    heart_rate: int
    heart_rate_valid: bool


def sort_indices_descend(x: Sequence[int], indices: Sequence[int]) -> List[int]:
    """Order ``indices`` by decreasing ``x[index]``; ties keep their order."""
    return sorted(indices, key=lambda index: x[index], reverse=True)


def peaks_above_min_height(x: Sequence[int], min_height: int) -> List[int]:
    """Locate local maxima above ``min_height``; flat peaks report their left edge."""
    size = len(x)
    locs: List[int] = []
    i = 1
    while i < size - 1:
        if x[i] > min_height and x[i] > x[i - 1]:
            width = 1
            while i + width < size and x[i] == x[i + width]:
                width += 1
            if i + width < size and x[i] > x[i + width] and len(locs) < MAX_PEAKS:
                locs.append(i)
                i += width + 1
            else:
                i += width
        else:
            i += 1
    return locs


def remove_close_peaks(locs: Sequence[int], x: Sequence[int], min_distance: int) -> List[int]:
    """Drop peaks closer than ``min_distance`` to a larger one; return ascending."""
    # The first pass measures against a virtual peak at index -1.
    kept = [loc for loc in sort_indices_descend(x, locs) if abs(loc + 1) > min_distance]
    position = 0
    while position < len(kept):
        anchor = kept[position]
        kept = kept[: position + 1] + [
            loc for loc in kept[position + 1:] if abs(loc - anchor) > min_distance
        ]
        position += 1
    return sorted(kept)


def find_peaks(x: Sequence[int], min_height: int, min_distance: int, max_num: int) -> List[int]:
    """Find at most ``max_num`` peaks above ``min_height`` at least ``min_distance`` apart."""
    locs = peaks_above_min_height(x, min_height)
    locs = remove_close_peaks(locs, x, min_distance)
    return locs[:max_num]


def heart_rate_and_oxygen_saturation(
    ir_buffer: Sequence[int], red_buffer: Sequence[int]
) -> Spo2Result:
    """Estimate heart rate (bpm) and SpO2 (%) from IR and red sample buffers."""
    count = len(ir_buffer)
    if count == 0:
        raise ValueError("IR buffer is empty")
    if count > BUFFER_SIZE:
        raise ValueError(f"buffers hold at most {BUFFER_SIZE} samples, got {count}")
    if len(red_buffer) != count:
        raise ValueError("IR and red buffers must have the same length")

    ir = [value & 0xFFFFFFFF for value in ir_buffer]
    red = [value & 0xFFFFFFFF for value in red_buffer]
    padding = BUFFER_SIZE - count

    # Remove DC and invert, so that valleys become peaks.
    ir_mean = (sum(ir) & 0xFFFFFFFF) // count
    inverted = [_int32(ir_mean - value) for value in ir] + [0] * padding

    smoothed = [
        _cdiv(_int32(sum(inverted[k:k + MA4_SIZE])), MA4_SIZE)
        for k in range(BUFFER_SIZE - MA4_SIZE)
    ]
    smoothed.extend(inverted[BUFFER_SIZE - MA4_SIZE:])

    threshold = _cdiv(_int32(sum(smoothed)), BUFFER_SIZE)
    threshold = min(max(threshold, _MIN_THRESHOLD), _MAX_THRESHOLD)

    valleys = find_peaks(smoothed, threshold, _PEAK_DISTANCE, MAX_PEAKS)

    if len(valleys) >= 2:
        interval = sum(b - a for a, b in zip(valleys, valleys[1:])) // (len(valleys) - 1)
        heart_rate = (FREQ_S * 60) // interval
        heart_rate_valid = True
    else:
        heart_rate = INVALID
        heart_rate_valid = False

    # Raw values again: IR is x, red is y.
    x = [_int32(value) for value in ir] + smoothed[count:]
    y = [_int32(value) for value in red] + [0] * padding

    if any(loc > BUFFER_SIZE for loc in valleys):
        return Spo2Result(INVALID, False, heart_rate, heart_rate_valid)

    ratios: List[int] = []
    x_dc_max_idx = 0
    y_dc_max_idx = 0
    for start, end in zip(valleys, valleys[1:]):
        if end - start <= 3:
            continue
        x_dc_max = _DC_FLOOR
        y_dc_max = _DC_FLOOR
        for i in range(start, end):
            if x[i] > x_dc_max:
                x_dc_max, x_dc_max_idx = x[i], i
            if y[i] > y_dc_max:
                y_dc_max, y_dc_max_idx = y[i], i
        span = end - start

        y_ac = _int32(_int32(y[end] - y[start]) * (y_dc_max_idx - start))
        y_ac = _int32(y[start] + _cdiv(y_ac, span))
        y_ac = _int32(y[y_dc_max_idx] - y_ac)

        x_ac = _int32(_int32(x[end] - x[start]) * (x_dc_max_idx - start))
        x_ac = _int32(x[start] + _cdiv(x_ac, span))
        x_ac = _int32(x[y_dc_max_idx] - x_ac)

        numerator = _int32(y_ac * x_dc_max) >> 7
        denominator = _int32(x_ac * y_dc_max) >> 7
        if denominator > 0 and len(ratios) < _MAX_RATIOS and numerator != 0:
            ratios.append(_cdiv(_int32(numerator * 100), denominator))

    ratios.sort()
    middle = len(ratios) // 2
    if middle > 1:
        ratio_average = _cdiv(ratios[middle - 1] + ratios[middle], 2)
    elif ratios:
        ratio_average = ratios[middle]
    else:
        ratio_average = 0

    if 2 < ratio_average < len(SPO2_TABLE):
        return Spo2Result(SPO2_TABLE[ratio_average], True, heart_rate, heart_rate_valid)
    return Spo2Result(INVALID, False, heart_rate, heart_rate_valid)