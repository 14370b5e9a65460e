"""Non-blocking OBD-II mode 01 client over a CAN bus, with PID decoding."""

__version__ = "0.1.0"
__all__ = ["client", "pids"]