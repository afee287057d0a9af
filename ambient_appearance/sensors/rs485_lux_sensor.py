from __future__ import annotations

import logging
from dataclasses import dataclass

from pymodbus.client import ModbusSerialClient

from .base import Sensor

logger = logging.getLogger(__name__)


@dataclass
class ModbusRtuConfig:
    port: str = "/dev/ttyUSB0"      # Windows example: "COM3"
    baudrate: int = 9600
    bytesize: int = 8
    parity: str = "N"               # "N", "E", "O"
    stopbits: int = 1
    timeout_s: float = 1.0
    slave_id: int = 1


@dataclass
class LuxRegisterSpec:
    functioncode: int = 3  # 3=holding, 4=input
    address: int = 0
    count: int = 1
    scale: float = 1.0     # lux = combined registers * scale


class RS485LuxSensor(Sensor):
    """External lux meter on a USB RS485 adapter (Modbus RTU).

    Connects lazily; a failed read drops the connection so the next poll
    reconnects.
    """

    def __init__(
        self,
        cfg: ModbusRtuConfig,
        spec: LuxRegisterSpec = LuxRegisterSpec(),
        sensor_id: str = "lux_rs485",
    ):
        if spec.functioncode not in (3, 4):
            raise ValueError(f"Unsupported functioncode: {spec.functioncode}")
        self._cfg = cfg
        self._spec = spec
        self._sensor_id = sensor_id
        self._client = ModbusSerialClient(
            port=cfg.port,
            baudrate=cfg.baudrate,
            bytesize=cfg.bytesize,
            parity=cfg.parity,
            stopbits=cfg.stopbits,
            timeout=cfg.timeout_s,
        )
        self._connected = False

    @property
    def sensor_id(self) -> str:
        return self._sensor_id

    def _ensure_connected(self) -> None:
        if self._connected:
            return
        if not self._client.connect():
            raise RuntimeError(f"Unable to connect Modbus RTU on {self._cfg.port}")
        self._connected = True
        logger.info("Modbus RTU connected on %s (baud=%s)", self._cfg.port, self._cfg.baudrate)

    def read(self) -> float:
        self._ensure_connected()

        if self._spec.functioncode == 3:
            rr = self._client.read_holding_registers(
                self._spec.address, count=self._spec.count, device_id=self._cfg.slave_id
            )
        else:
            rr = self._client.read_input_registers(
                self._spec.address, count=self._spec.count, device_id=self._cfg.slave_id
            )

        if rr.isError() or not rr.registers:
            self._connected = False
            raise RuntimeError(f"Modbus read error (fc={self._spec.functioncode}): {rr}")

        # Big-endian, hi word first
        raw = 0
        for r in rr.registers:
            raw = (raw << 16) | r

        lux = float(raw) * float(self._spec.scale)
        logger.debug("RS485 lux: raw=%d scale=%s lux=%.3f", raw, self._spec.scale, lux)
        return lux

    def close(self) -> None:
        try:
            self._client.close()
        finally:
            self._connected = False
