"""Driver and signal processing for MAX30105/MAX30102 pulse-oximetry sensors."""

__version__ = "0.1.0"
__all__ = ["registers", "heart_rate", "spo2", "sensor", "fifo"]