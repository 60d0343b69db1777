"""I2C driver for the MAX30105 / MAX30102 optical sensors."""

import time
from typing import Callable, Optional, Protocol, Sequence, Tuple, runtime_checkable

from . import registers as reg
from .registers import I2C_ADDRESS, Register, SlotDevice

#: Standard and fast I2C clock rates, in Hz.
I2C_SPEED_STANDARD = 100_000
I2C_SPEED_FAST = 400_000

#: Largest number of bytes requested from the bus in one transfer.
I2C_BUFFER_LENGTH = 32

_POLL_TIMEOUT_S = 0.1
_POLL_INTERVAL_S = 0.001
_TEMP_FRACTION_STEP = 0.0625

_SAMPLE_AVERAGES = {
    1: reg.SAMPLEAVG_1,
    2: reg.SAMPLEAVG_2,
    4: reg.SAMPLEAVG_4,
    8: reg.SAMPLEAVG_8,
    16: reg.SAMPLEAVG_16,
    32: reg.SAMPLEAVG_32,
}

_ADC_STEPS = ((4096, reg.ADCRANGE_2048), (8192, reg.ADCRANGE_4096), (16384, reg.ADCRANGE_8192))
_ADC_TOP = (16384, reg.ADCRANGE_16384)

_RATE_STEPS = (
    (100, reg.SAMPLERATE_50),
    (200, reg.SAMPLERATE_100),
    (400, reg.SAMPLERATE_200),
    (800, reg.SAMPLERATE_400),
    (1000, reg.SAMPLERATE_800),
    (1600, reg.SAMPLERATE_1000),
    (3200, reg.SAMPLERATE_1600),
)
_RATE_TOP = (3200, reg.SAMPLERATE_3200)

_WIDTH_STEPS = ((118, reg.PULSEWIDTH_69), (215, reg.PULSEWIDTH_118), (411, reg.PULSEWIDTH_215))
_WIDTH_TOP = (411, reg.PULSEWIDTH_411)

_SLOTS = {
    1: (Register.MULTI_LED_CONFIG1, reg.SLOT1_MASK, 0),
    2: (Register.MULTI_LED_CONFIG1, reg.SLOT2_MASK, 4),
    3: (Register.MULTI_LED_CONFIG2, reg.SLOT3_MASK, 0),
    4: (Register.MULTI_LED_CONFIG2, reg.SLOT4_MASK, 4),
}


def _step(value: int, steps: Sequence[Tuple[int, int]], top: Tuple[int, int], fallback: int) -> int:
    """Pick the register bits for ``value`` from a table of upper limits."""
    for limit, bits in steps:
        if value < limit:
            return bits
    if value == top[0]:
        return top[1]
    return fallback


def _check_byte(value: int) -> int:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"register value must fit in one byte, got {value}")
    return value


@runtime_checkable
class I2CBus(Protocol):
    """The subset of an SMBus-style interface the driver needs."""

    def read_byte_data(self, address: int, register: int) -> int:
        """Read one byte from ``register`` of the device at ``address``."""

    def write_byte_data(self, address: int, register: int, value: int) -> None:
        """Write one byte to ``register`` of the device at ``address``."""

    def read_i2c_block_data(self, address: int, register: int, length: int) -> Sequence[int]:
        """Read ``length`` bytes starting at ``register`` of the device at ``address``."""


class SensorNotFoundError(RuntimeError):
    """The device on the bus did not report a supported part ID."""


class MAX30105:
    """Register-level control of a MAX30105 or MAX30102 sensor."""

    def __init__(
        self,
        bus: I2CBus,
        address: int = I2C_ADDRESS,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.bus = bus
        self.address = address
        self.active_leds = 3
        self.part_id: Optional[int] = None
        self._revision_id: Optional[int] = None
        self._sleep = sleep
        self._clock = clock

    # Connection

    def begin(self) -> None:
        """Verify the part ID and read the revision; raise if no sensor answers."""
        part_id = self.read_part_id()
        if part_id not in (reg.MAX30102_PART_ID, reg.MAX30105_PART_ID):
            raise SensorNotFoundError(
                f"unexpected part ID 0x{part_id:02X} at address 0x{self.address:02X}"
            )
        self.part_id = part_id
        self.read_revision_id()

    # Low-level access

    def read_register(self, register: int) -> int:
        """Read one register."""
        return self.bus.read_byte_data(self.address, register) & 0xFF

    def write_register(self, register: int, value: int) -> None:
        """Write one register."""
        self.bus.write_byte_data(self.address, register, _check_byte(value))

    def bit_mask(self, register: int, mask: int, value: int) -> None:
        """Keep the bits of ``register`` selected by ``mask`` and OR in ``value``."""
        kept = self.read_register(register) & mask
        self.write_register(register, kept | value)

    def read_fifo(self, length: int) -> bytes:
        """Burst-read ``length`` bytes from the FIFO data register."""
        if length < 0:
            raise ValueError("length must not be negative")
        data = bytearray()
        while len(data) < length:
            chunk = min(length - len(data), I2C_BUFFER_LENGTH)
            received = self.bus.read_i2c_block_data(self.address, Register.FIFO_DATA, chunk)
            data.extend(value & 0xFF for value in received)
        return bytes(data)

    def _poll_until_clear(self, register: int, bit: int) -> bool:
        start = self._clock()
        while self._clock() - start < _POLL_TIMEOUT_S:
            if not self.read_register(register) & bit:
                return True
            self._sleep(_POLL_INTERVAL_S)
        return False

    # Interrupts

    def int1(self) -> int:
        """Return the main interrupt status register."""
        return self.read_register(Register.INTSTAT1)

    def int2(self) -> int:
        """Return the temperature-ready interrupt status register."""
        return self.read_register(Register.INTSTAT2)

    def enable_a_full(self) -> None:
        self.bit_mask(Register.INTENABLE1, reg.INT_A_FULL_MASK, reg.INT_A_FULL_ENABLE)

    def disable_a_full(self) -> None:
        self.bit_mask(Register.INTENABLE1, reg.INT_A_FULL_MASK, reg.INT_A_FULL_DISABLE)

    def enable_data_ready(self) -> None:
        self.bit_mask(Register.INTENABLE1, reg.INT_DATA_RDY_MASK, reg.INT_DATA_RDY_ENABLE)

    def disable_data_ready(self) -> None:
        self.bit_mask(Register.INTENABLE1, reg.INT_DATA_RDY_MASK, reg.INT_DATA_RDY_DISABLE)

    def enable_alc_overflow(self) -> None:
        self.bit_mask(Register.INTENABLE1, reg.INT_ALC_OVF_MASK, reg.INT_ALC_OVF_ENABLE)

    def disable_alc_overflow(self) -> None:
        self.bit_mask(Register.INTENABLE1, reg.INT_ALC_OVF_MASK, reg.INT_ALC_OVF_DISABLE)

    def enable_prox_int(self) -> None:
        self.bit_mask(Register.INTENABLE1, reg.INT_PROX_INT_MASK, reg.INT_PROX_INT_ENABLE)

    def disable_prox_int(self) -> None:
        self.bit_mask(Register.INTENABLE1, reg.INT_PROX_INT_MASK, reg.INT_PROX_INT_DISABLE)

    def enable_die_temp_ready(self) -> None:
        self.bit_mask(
            Register.INTENABLE2, reg.INT_DIE_TEMP_RDY_MASK, reg.INT_DIE_TEMP_RDY_ENABLE
        )

    def disable_die_temp_ready(self) -> None:
        self.bit_mask(
            Register.INTENABLE2, reg.INT_DIE_TEMP_RDY_MASK, reg.INT_DIE_TEMP_RDY_DISABLE
        )

    # Mode configuration

    def soft_reset(self) -> None:
        """Reset all registers to power-on values, waiting up to 100 ms."""
        self.bit_mask(Register.MODE_CONFIG, reg.RESET_MASK, reg.RESET)
        self._poll_until_clear(Register.MODE_CONFIG, reg.RESET)

    def shut_down(self) -> None:
        """Enter low-power mode; the device still answers on the bus."""
        self.bit_mask(Register.MODE_CONFIG, reg.SHUTDOWN_MASK, reg.SHUTDOWN)

    def wake_up(self) -> None:
        """Leave low-power mode."""
        self.bit_mask(Register.MODE_CONFIG, reg.SHUTDOWN_MASK, reg.WAKEUP)

    def set_led_mode(self, mode: int) -> None:
        self.bit_mask(Register.MODE_CONFIG, reg.MODE_MASK, mode)

    def set_adc_range(self, adc_range: int) -> None:
        self.bit_mask(Register.PARTICLE_CONFIG, reg.ADCRANGE_MASK, adc_range)

    def set_sample_rate(self, sample_rate: int) -> None:
        self.bit_mask(Register.PARTICLE_CONFIG, reg.SAMPLERATE_MASK, sample_rate)

    def set_pulse_width(self, pulse_width: int) -> None:
        self.bit_mask(Register.PARTICLE_CONFIG, reg.PULSEWIDTH_MASK, pulse_width)

    # LED amplitudes: 0x00 = 0 mA, 0x7F = 25.4 mA, 0xFF = 50 mA

    def set_pulse_amplitude_red(self, amplitude: int) -> None:
        self.write_register(Register.LED1_PULSE_AMP, amplitude)

    def set_pulse_amplitude_ir(self, amplitude: int) -> None:
        self.write_register(Register.LED2_PULSE_AMP, amplitude)

    def set_pulse_amplitude_green(self, amplitude: int) -> None:
        self.write_register(Register.LED3_PULSE_AMP, amplitude)

    def set_pulse_amplitude_proximity(self, amplitude: int) -> None:
        self.write_register(Register.LED_PROX_AMP, amplitude)

    def set_proximity_threshold(self, thresh_msb: int) -> None:
        """Set the 8 most significant bits of the IR count that starts particle sensing."""
        self.write_register(Register.PROX_INT_THRESH, thresh_msb)

    # Multi-LED slots

    def enable_slot(self, slot_number: int, device: int) -> None:
        """Assign ``device`` to time slot 1 to 4."""
        try:
            register, mask, shift = _SLOTS[slot_number]
        except KeyError:
            raise ValueError(f"slot number must be 1 to 4, got {slot_number}") from None
        self.bit_mask(register, mask, (device << shift) & 0xFF)

    def disable_slots(self) -> None:
        """Clear all slot assignments."""
        self.write_register(Register.MULTI_LED_CONFIG1, 0)
        self.write_register(Register.MULTI_LED_CONFIG2, 0)

    # FIFO configuration

    def set_fifo_average(self, samples: int) -> None:
        self.bit_mask(Register.FIFO_CONFIG, reg.SAMPLEAVG_MASK, samples)

    def clear_fifo(self) -> None:
        """Zero the FIFO write, overflow and read pointers."""
        self.write_register(Register.FIFO_WRITE_PTR, 0)
        self.write_register(Register.FIFO_OVERFLOW, 0)
        self.write_register(Register.FIFO_READ_PTR, 0)

    def enable_fifo_rollover(self) -> None:
        self.bit_mask(Register.FIFO_CONFIG, reg.ROLLOVER_MASK, reg.ROLLOVER_ENABLE)

    def disable_fifo_rollover(self) -> None:
        self.bit_mask(Register.FIFO_CONFIG, reg.ROLLOVER_MASK, reg.ROLLOVER_DISABLE)

    def set_fifo_almost_full(self, samples: int) -> None:
        """Set the almost-full trigger (0x00 is 32 samples, 0x0F is 17)."""
        self.bit_mask(Register.FIFO_CONFIG, reg.A_FULL_MASK, samples)

    def write_pointer(self) -> int:
        return self.read_register(Register.FIFO_WRITE_PTR)

    def read_pointer(self) -> int:
        return self.read_register(Register.FIFO_READ_PTR)

    # Die temperature

    def read_temperature(self) -> float:
        """Take one die temperature reading, in degrees Celsius."""
        self.write_register(Register.DIE_TEMP_CONFIG, 0x01)
        self._poll_until_clear(Register.DIE_TEMP_CONFIG, 0x01)
        whole = self.read_register(Register.DIE_TEMP_INT)
        if whole >= 0x80:
            whole -= 0x100
        fraction = self.read_register(Register.DIE_TEMP_FRAC)
        return whole + fraction * _TEMP_FRACTION_STEP

    def read_temperature_f(self) -> float:
        """Take one die temperature reading, in degrees Fahrenheit."""
        return self.read_temperature() * 1.8 + 32.0

    def set_prox_int_thresh(self, value: int) -> None:
        self.write_register(Register.PROX_INT_THRESH, value)

    # Identification

    def read_part_id(self) -> int:
        return self.read_register(Register.PART_ID)

    def read_revision_id(self) -> int:
        """Read the revision ID from the device and remember it."""
        self._revision_id = self.read_register(Register.REVISION_ID)
        return self._revision_id

    def revision_id(self) -> Optional[int]:
        """The revision ID last read, or None before any read."""
        return self._revision_id

    # Setup

    def setup(
        self,
        power_level: int = 0x1F,
        sample_average: int = 4,
        led_mode: int = 3,
        sample_rate: int = 400,
        pulse_width: int = 411,
        adc_range: int = 4096,
    ) -> None:
        """Reset the sensor and configure it for sampling."""
        self.soft_reset()

        self.set_fifo_average(_SAMPLE_AVERAGES.get(sample_average, reg.SAMPLEAVG_4))
        self.enable_fifo_rollover()

        if led_mode == 3:
            self.set_led_mode(reg.MODE_MULTILED)
        elif led_mode == 2:
            self.set_led_mode(reg.MODE_REDIRONLY)
        else:
            self.set_led_mode(reg.MODE_REDONLY)
        self.active_leds = led_mode

        self.set_adc_range(_step(adc_range, _ADC_STEPS, _ADC_TOP, reg.ADCRANGE_2048))
        self.set_sample_rate(_step(sample_rate, _RATE_STEPS, _RATE_TOP, reg.SAMPLERATE_50))
        self.set_pulse_width(_step(pulse_width, _WIDTH_STEPS, _WIDTH_TOP, reg.PULSEWIDTH_69))

        self.set_pulse_amplitude_red(power_level)
        self.set_pulse_amplitude_ir(power_level)
        self.set_pulse_amplitude_green(power_level)
        self.set_pulse_amplitude_proximity(power_level)

        self.enable_slot(1, SlotDevice.RED_LED)
        if led_mode > 1:
            self.enable_slot(2, SlotDevice.IR_LED)
        if led_mode > 2:
            self.enable_slot(3, SlotDevice.GREEN_LED)

        self.clear_fifo()