# pulseox

A pure-Python driver for the MAX30105 / MAX30102 optical particle and
pulse-oximetry sensors, together with the signal-processing routines used to
turn their raw readings into heart rate and blood-oxygen (SpO2) estimates.

Not for medical diagnosis: optical heart-rate detection is prone to false
readings.

## Installation

```
pip install pulseox
```

The package has no runtime dependencies. You supply the I2C bus.

## Talking to the sensor

`MAX30105` works with any object that provides the methods of the `I2CBus`
protocol: `read_byte_data`, `write_byte_data` and `read_i2c_block_data`.
An `smbus2.SMBus` instance fits, and so does a fake bus in tests.

```python
from pulseox.sensor import MAX30105, SensorNotFoundError
from pulseox.fifo import SampleReader

sensor = MAX30105(bus)
try:
    sensor.begin()
except SensorNotFoundError:
    raise SystemExit("no MAX3010x found on the bus")

sensor.setup(0x1F, 4, 3, 400, 411, 4096)
print("die temperature:", sensor.read_temperature(), "C")

reader = SampleReader(sensor)
while True:
    reader.check()
    while reader.available():
        print(reader.fifo_red(), reader.fifo_ir(), reader.fifo_green())
        reader.next_sample()
```

`setup` takes the LED power level, the FIFO sample average, the LED mode
(1 = red, 2 = red + IR, 3 = red + IR + green), the sample rate, the pulse
width and the ADC range, snapping each to the nearest value the chip accepts.

Register addresses live in `pulseox.registers.Register`, slot assignments in
`pulseox.registers.SlotDevice`.

## Beat detection

`pulseox.heart_rate.BeatDetector` implements the peripheral beat amplitude
algorithm: feed it IR samples one at a time and it reports when a beat is
seen.

```python
from pulseox.heart_rate import BeatDetector

detector = BeatDetector()
for sample in ir_samples:
    if detector.check_for_beat(sample):
        print("beat")
```

## Heart rate and SpO2

`pulseox.spo2.heart_rate_and_oxygen_saturation` takes 100 IR and 100 red
samples (four seconds at 25 samples per second) and returns an `Spo2Result`
carrying the SpO2 and heart-rate estimates and whether each is valid.

```python
from pulseox.spo2 import heart_rate_and_oxygen_saturation

result = heart_rate_and_oxygen_saturation(ir_buffer, red_buffer)
```

## Running the tests

```
pip install pulseox[test]
pytest
```