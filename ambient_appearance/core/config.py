from datetime import time
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", validate_assignment=True)

    app_name: str = "Ambient Appearance"
    timezone: Optional[str] = None  # None = system local time

    # Decision thresholds
    darkness_threshold: float = Field(default=52.0, ge=0)
    extra_threshold_before_reverting_to_light_mode: float = Field(default=10.0, ge=0)
    ambient_light_smoothing_constant: float = Field(default=3.0, ge=0)
    settle_delay_seconds: float = Field(default=60.0, ge=0)

    # Commit gate
    is_auto_mode_enabled: bool = True
    is_clamshell_veto_enabled: bool = True
    is_wake_immediate_change_enabled: bool = True

    # Quiet period, [start, end) local time, may wrap past midnight
    time_override_enabled: bool = False
    time_override_start: time = time(9, 0)
    time_override_end: time = time(17, 0)

    # Wake handling
    wake_settle_seconds: float = Field(default=2.0, ge=0)
    wake_detect_interval_seconds: float = Field(default=5.0, gt=0)

    # Collaborators: "sim" for development
    sensor_mode: Literal["sim", "iio", "rs485"] = "sim"
    sensor_frequency: Literal["fast", "realtime"] = "fast"
    appearance_mode: Literal["sim", "gnome", "macos"] = "sim"
    lid_mode: Literal["sim", "acpi", "macos"] = "sim"

    # Linux IIO ambient light sensor (None = first device found)
    iio_device_path: Optional[str] = None

    # RS485 / Modbus RTU
    rs485_port: str = "/dev/ttyUSB0"      # Windows example: "COM3"
    rs485_baudrate: int = 9600
    rs485_slave_id: int = 1

    # Lux register definition
    lux_functioncode: int = 3             # 3=holding, 4=input
    lux_register_address: int = 0
    lux_register_count: int = 1
    lux_scale: float = 1.0

    # Storage / logging
    sqlite_path: str = Field(default="appearance.db")
    log_file: str = "appearance.log"

    # HTTP
    host: str = "127.0.0.1"
    port: int = 8765


settings = Settings()
