import pytest

from pulseox.fifo import SAMPLE_MASK, SampleReader
from pulseox.registers import Register
from pulseox.sensor import MAX30105


class FakeBus:
    def __init__(self):
        self.registers = {}
        self.fifo = []
        self.requests = []

    def read_byte_data(self, address, register):
        return self.registers.get(int(register), 0)

    def write_byte_data(self, address, register, value):
        self.registers[int(register)] = value

    def read_i2c_block_data(self, address, register, length):
        self.requests.append(length)
        data, self.fifo = self.fifo[:length], self.fifo[length:]
        return data


class FakeClock:
    def __init__(self, step=0.1):
        self.now = 0.0
        self.step = step

    def __call__(self):
        self.now += self.step
        return self.now


def make_reader(leds=2, clock=None):
    bus = FakeBus()
    sensor = MAX30105(bus, sleep=lambda s: None)
    sensor.active_leds = leds
    reader = SampleReader(
        sensor, sleep=lambda s: None, clock=clock if clock is not None else FakeClock()
    )
    return bus, reader


def set_pointers(bus, read_ptr, write_ptr):
    bus.registers[int(Register.FIFO_READ_PTR)] = read_ptr
    bus.registers[int(Register.FIFO_WRITE_PTR)] = write_ptr


def test_check_without_new_data_returns_zero():
    bus, reader = make_reader()
    set_pointers(bus, 5, 5)
    assert reader.check() == 0
    assert reader.available() == 0
    assert bus.requests == []


def test_check_reads_red_and_ir_samples():
    bus, reader = make_reader(leds=2)
    set_pointers(bus, 0, 2)
    bus.fifo = [0x01, 0x02, 0x03, 0x00, 0x00, 0x05,
                0x00, 0x01, 0x00, 0x00, 0x00, 0x07]
    assert reader.check() == 2
    assert reader.available() == 2
    reader.next_sample()
    assert reader.fifo_red() == 0x010203
    assert reader.fifo_ir() == 0x000005
    reader.next_sample()
    assert reader.fifo_red() == 0x000100
    assert reader.fifo_ir() == 0x000007
    assert reader.available() == 0


def test_readings_are_masked_to_18_bits():
    bus, reader = make_reader(leds=1)
    set_pointers(bus, 0, 1)
    bus.fifo = [0xFF, 0xFF, 0xFF]
    reader.check()
    reader.next_sample()
    assert reader.fifo_red() == SAMPLE_MASK


def test_pointer_wrap_counts_samples():
    bus, reader = make_reader(leds=1)
    set_pointers(bus, 30, 2)
    bus.fifo = [0, 0, 1] * 4
    assert reader.check() == 4
    assert bus.fifo == []


def test_large_reads_are_split_into_whole_records_three_leds():
    bus, reader = make_reader(leds=3)
    set_pointers(bus, 0, 10)
    bus.fifo = [0] * 90
    assert reader.check() == 10
    assert bus.requests[:3] == [27, 27, 27]
    assert sum(bus.requests) == 90
    assert all(length % 9 == 0 for length in bus.requests)


def test_large_reads_are_split_into_whole_records_two_leds():
    bus, reader = make_reader(leds=2)
    set_pointers(bus, 0, 8)
    bus.fifo = [0] * 48
    reader.check()
    assert bus.requests[0] == 30
    assert sum(bus.requests) == 48


def test_green_channel_stored_with_three_leds():
    bus, reader = make_reader(leds=3)
    set_pointers(bus, 0, 1)
    bus.fifo = [0, 0, 1, 0, 0, 2, 0, 0, 3]
    reader.check()
    reader.next_sample()
    assert (reader.fifo_red(), reader.fifo_ir(), reader.fifo_green()) == (1, 2, 3)


def test_next_sample_without_data_keeps_tail():
    _, reader = make_reader()
    reader.next_sample()
    assert reader.tail == 0
    assert reader.available() == 0


def test_red_returns_latest_sample():
    bus, reader = make_reader(leds=2)
    set_pointers(bus, 0, 1)
    bus.fifo = [0, 0, 9, 0, 0, 4]
    assert reader.red() == 9


def test_ir_returns_latest_sample():
    bus, reader = make_reader(leds=2)
    set_pointers(bus, 0, 1)
    bus.fifo = [0, 0, 9, 0, 0, 4]
    assert reader.ir() == 4


def test_getters_return_zero_on_timeout():
    bus, reader = make_reader(clock=FakeClock(step=0.1))
    set_pointers(bus, 3, 3)
    assert reader.red() == 0
    assert reader.green() == 0


def test_safe_check_times_out():
    bus, reader = make_reader(clock=FakeClock(step=0.05))
    set_pointers(bus, 0, 0)
    assert reader.safe_check(250) is False


def test_safe_check_finds_data():
    bus, reader = make_reader(leds=1)
    set_pointers(bus, 0, 1)
    bus.fifo = [0, 0, 1]
    assert reader.safe_check(250) is True


def test_head_stays_within_storage():
    bus, reader = make_reader(leds=1)
    set_pointers(bus, 0, 7)
    bus.fifo = [0, 0, 1] * 7
    reader.check()
    assert 0 <= reader.head < reader.storage_size
    assert reader.head == 7 % reader.storage_size


def test_invalid_led_count_raises():
    bus, reader = make_reader(leds=0)
    set_pointers(bus, 0, 1)
    with pytest.raises(ValueError):
        reader.check()


def test_invalid_storage_size_raises():
    sensor = MAX30105(FakeBus())
    with pytest.raises(ValueError):
        SampleReader(sensor, storage_size=0)