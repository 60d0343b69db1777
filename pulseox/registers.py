"""Register map and command constants for the MAX30105 / MAX30102 sensors."""

from enum import IntEnum

#: 7-bit I2C address shared by the MAX30105 and MAX30102.
I2C_ADDRESS = 0x57


class Register(IntEnum):
    """Register addresses of the sensor."""

    # Status
    INTSTAT1 = 0x00
    INTSTAT2 = 0x01
    INTENABLE1 = 0x02
    INTENABLE2 = 0x03

    # FIFO
    FIFO_WRITE_PTR = 0x04
    FIFO_OVERFLOW = 0x05
    FIFO_READ_PTR = 0x06
    FIFO_DATA = 0x07

    # Configuration
    FIFO_CONFIG = 0x08
    MODE_CONFIG = 0x09
    PARTICLE_CONFIG = 0x0A
    LED1_PULSE_AMP = 0x0C
    LED2_PULSE_AMP = 0x0D
    LED3_PULSE_AMP = 0x0E
    LED_PROX_AMP = 0x10
    MULTI_LED_CONFIG1 = 0x11
    MULTI_LED_CONFIG2 = 0x12

    # Die temperature
    DIE_TEMP_INT = 0x1F
    DIE_TEMP_FRAC = 0x20
    DIE_TEMP_CONFIG = 0x21

    # Proximity function
    PROX_INT_THRESH = 0x30

    # Part identification
    REVISION_ID = 0xFE
    PART_ID = 0xFF


class SlotDevice(IntEnum):
    """What a multi-LED time slot can be assigned to."""

    NONE = 0x00
    RED_LED = 0x01
    IR_LED = 0x02
    GREEN_LED = 0x03
    NONE_PILOT = 0x04
    RED_PILOT = 0x05
    IR_PILOT = 0x06
    GREEN_PILOT = 0x07


def _keep(bits: int) -> int:
    """Mask that clears ``bits`` in an 8-bit register."""
    return ~bits & 0xFF


# Interrupt enables
INT_A_FULL_MASK = _keep(0b10000000)
INT_A_FULL_ENABLE = 0x80
INT_A_FULL_DISABLE = 0x00

INT_DATA_RDY_MASK = _keep(0b01000000)
INT_DATA_RDY_ENABLE = 0x40
INT_DATA_RDY_DISABLE = 0x00

INT_ALC_OVF_MASK = _keep(0b00100000)
INT_ALC_OVF_ENABLE = 0x20
INT_ALC_OVF_DISABLE = 0x00

INT_PROX_INT_MASK = _keep(0b00010000)
INT_PROX_INT_ENABLE = 0x10
INT_PROX_INT_DISABLE = 0x00

INT_DIE_TEMP_RDY_MASK = _keep(0b00000010)
INT_DIE_TEMP_RDY_ENABLE = 0x02
INT_DIE_TEMP_RDY_DISABLE = 0x00

# FIFO configuration
SAMPLEAVG_MASK = _keep(0b11100000)
SAMPLEAVG_1 = 0x00
SAMPLEAVG_2 = 0x20
SAMPLEAVG_4 = 0x40
SAMPLEAVG_8 = 0x60
SAMPLEAVG_16 = 0x80
SAMPLEAVG_32 = 0xA0

ROLLOVER_MASK = 0xEF
ROLLOVER_ENABLE = 0x10
ROLLOVER_DISABLE = 0x00

A_FULL_MASK = 0xF0

# Mode configuration
SHUTDOWN_MASK = 0x7F
SHUTDOWN = 0x80
WAKEUP = 0x00

RESET_MASK = 0xBF
RESET = 0x40

MODE_MASK = 0xF8
MODE_REDONLY = 0x02
MODE_REDIRONLY = 0x03
MODE_MULTILED = 0x07

# Particle sensing configuration
ADCRANGE_MASK = 0x9F
ADCRANGE_2048 = 0x00
ADCRANGE_4096 = 0x20
ADCRANGE_8192 = 0x40
ADCRANGE_16384 = 0x60

SAMPLERATE_MASK = 0xE3
SAMPLERATE_50 = 0x00
SAMPLERATE_100 = 0x04
SAMPLERATE_200 = 0x08
SAMPLERATE_400 = 0x0C
SAMPLERATE_800 = 0x10
SAMPLERATE_1000 = 0x14
SAMPLERATE_1600 = 0x18
SAMPLERATE_3200 = 0x1C

PULSEWIDTH_MASK = 0xFC
PULSEWIDTH_69 = 0x00
PULSEWIDTH_118 = 0x01
PULSEWIDTH_215 = 0x02
PULSEWIDTH_411 = 0x03

# Multi-LED slot configuration
SLOT1_MASK = 0xF8
SLOT2_MASK = 0x8F
SLOT3_MASK = 0xF8
SLOT4_MASK = 0x8F

# Expected part identifiers
MAX30100_PART_ID = 0x11
MAX30105_PART_ID = 0x15
MAX30102_PART_ID = 0x15