"""
Serial Transport Layer

Handles low-level serial communication with OpenRTX radios.

This module provides:
- Serial port initialization and configuration
- Raw block send/receive
- Timeout and error handling
"""

import logging
from typing import Optional

try:
    import serial
except ImportError:
    raise ImportError("PySerial required: pip install pyserial")

from openrtx_companion.core.errors import DeviceIOError

logger = logging.getLogger(__name__)


class RadioTransportError(DeviceIOError):
    """Base exception for transport layer errors"""
    pass


class RadioNoContact(RadioTransportError):
    """Radio did not respond"""
    pass


class SerialTransport:
    """
    Low-level serial transport for OpenRTX radios.

    Handles:
    - Serial port management
    - Raw block read/write
    - Timeout and error handling

    Example:
        with SerialTransport(port="/dev/ttyACM0") as transport:
            transport.send_raw(block)
            data = transport.recv_raw(1024)
    """

    def __init__(
        self,
        port: str,
        baudrate: int = 115200,
        timeout: float = 3.0,
    ):
        """
        Initialize transport layer.

        Args:
            port: Serial port (e.g., "/dev/ttyACM0", "COM3")
            baudrate: Serial baud rate (default 115200)
            timeout: Read/write timeout in seconds (default 3.0)
        """
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.ser: Optional[serial.Serial] = None

    def open(self) -> None:
        """
        Open serial port and configure for radio communication.

        Raises:
            RadioTransportError: If port cannot be opened
        """
        try:
            self.ser = serial.Serial(
                port=self.port,
                baudrate=self.baudrate,
                bytesize=8,
                parity='N',
                stopbits=1,
                timeout=self.timeout,
                write_timeout=self.timeout,
            )
            self.ser.reset_input_buffer()
            self.ser.reset_output_buffer()

            logger.debug(
                f"Opened {self.port} at {self.baudrate} bps "
                f"(timeout={self.timeout}s)"
            )
        except serial.SerialException as e:
            raise RadioTransportError(f"Cannot open port {self.port}: {e}")

    def close(self) -> None:
        """Close serial port."""
        if self.ser and self.ser.is_open:
            self.ser.close()
            logger.debug(f"Closed {self.port}")

    def __enter__(self) -> "SerialTransport":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def send_raw(self, data: bytes) -> None:
        """
        Send raw bytes to radio.

        Raises:
            RadioTransportError: If write fails
        """
        if not self.ser or not self.ser.is_open:
            raise RadioTransportError("Serial port not open")

        try:
            written = self.ser.write(data)
            if written != len(data):
                raise RadioTransportError(
                    f"Incomplete write: sent {written}/{len(data)} bytes"
                )
            self.ser.flush()
        except serial.SerialException as e:
            raise RadioTransportError(f"Write error: {e}")

    def recv_raw(self, length: int) -> bytes:
        """
        Receive up to ``length`` raw bytes from radio.

        Raises:
            RadioNoContact: If nothing arrives before the timeout
            RadioTransportError: If read fails
        """
        if not self.ser or not self.ser.is_open:
            raise RadioTransportError("Serial port not open")

        try:
            data = self.ser.read(length)
        except serial.SerialException as e:
            raise RadioTransportError(f"Read error: {e}")

        if len(data) == 0:
            raise RadioNoContact("Radio did not respond (timeout)")
        return data
