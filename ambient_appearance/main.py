from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException
from pydantic import ValidationError

from .core.config import settings
from .core.log import configure_logging

from .api.routes import router as api_router
import ambient_appearance.api.routes as routes_module

from .domain.interfaces import AppearancePrimitive, LidState
from .domain.models import SensorFrequency
from .domain.preferences import Preferences
from .drivers.appearance import GnomeAppearance, MacAppearance, SimulatedAppearance
from .drivers.lid import AcpiLid, MacLid, SimulatedLid
from .sensors.base import Sensor
from .sensors.iio_lux_sensor import IIOLuxSensor
from .sensors.rs485_lux_sensor import LuxRegisterSpec, ModbusRtuConfig, RS485LuxSensor
from .sensors.simulated_lux_sensor import SimulatedLuxSensor
from .services.reader import AmbientLightReader
from .services.switcher import AppearanceService
from .services.wake import SuspendDetector
from .storage.sqlite_repo import SQLiteRepository


logger = logging.getLogger(__name__)


sim_sensor: SimulatedLuxSensor | None = None
sim_lid: SimulatedLid | None = None
sim_appearance: SimulatedAppearance | None = None


def build_sensor() -> Sensor:
    global sim_sensor

    mode = settings.sensor_mode
    if mode == "rs485":
        cfg = ModbusRtuConfig(
            port=settings.rs485_port,
            baudrate=settings.rs485_baudrate,
            slave_id=settings.rs485_slave_id,
        )
        spec = LuxRegisterSpec(
            functioncode=settings.lux_functioncode,
            address=settings.lux_register_address,
            count=settings.lux_register_count,
            scale=settings.lux_scale,
        )
        return RS485LuxSensor(cfg, spec=spec)

    if mode == "iio":
        path = Path(settings.iio_device_path) if settings.iio_device_path else None
        return IIOLuxSensor(device_path=path)

    # default to sim
    sim_sensor = SimulatedLuxSensor()
    return sim_sensor


def build_appearance() -> AppearancePrimitive:
    global sim_appearance

    if settings.appearance_mode == "gnome":
        return GnomeAppearance()
    if settings.appearance_mode == "macos":
        return MacAppearance()
    sim_appearance = SimulatedAppearance()
    return sim_appearance


def build_lid() -> LidState:
    global sim_lid

    if settings.lid_mode == "acpi":
        return AcpiLid()
    if settings.lid_mode == "macos":
        return MacLid()
    sim_lid = SimulatedLid()
    return sim_lid


# --- Singletons ---
preferences = Preferences(settings)
reader = AmbientLightReader(build_sensor())
appearance = build_appearance()
lid = build_lid()
repo = SQLiteRepository(settings.sqlite_path)
service = AppearanceService(
    preferences=preferences,
    reader=reader,
    appearance=appearance,
    lid=lid,
    frequency=SensorFrequency[settings.sensor_frequency.upper()],
)
suspend_detector = SuspendDetector(
    on_wake=service.notify_wake,
    interval_s=settings.wake_detect_interval_seconds,
)


def get_service() -> AppearanceService:
    return service


def get_preferences() -> Preferences:
    return preferences


def get_repo() -> SQLiteRepository:
    return repo


def get_sim_sensor() -> SimulatedLuxSensor:
    if sim_sensor is None:
        raise HTTPException(status_code=409, detail="Sim sensor not available (sensor_mode is not 'sim').")
    return sim_sensor


def get_sim_lid() -> SimulatedLid:
    if sim_lid is None:
        raise HTTPException(status_code=409, detail="Sim lid not available (lid_mode is not 'sim').")
    return sim_lid


def get_sim_appearance() -> SimulatedAppearance:
    if sim_appearance is None:
        raise HTTPException(status_code=409, detail="Sim appearance not available (appearance_mode is not 'sim').")
    return sim_appearance


async def load_persisted_preferences() -> None:
    stored = await repo.get_all_settings()
    if not stored:
        return
    try:
        changed = preferences.load_persisted(stored)
    except ValidationError as e:
        logger.warning("Stored preferences invalid, using defaults: %s", e)
        return
    logger.info("Loaded %d stored preference(s)", len(changed))


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_file)
    logger.info(
        "Starting %s (sensor=%s appearance=%s lid=%s)",
        settings.app_name, settings.sensor_mode, settings.appearance_mode, settings.lid_mode,
    )

    await repo.init()
    await load_persisted_preferences()

    await service.start()
    await suspend_detector.start()

    try:
        yield
    finally:
        await suspend_detector.stop()
        await service.stop()
        logger.info("Shutdown complete")


app = FastAPI(title=settings.app_name, lifespan=lifespan)

# Make the dependency functions in routes resolve to the real ones
app.dependency_overrides[routes_module.get_service] = get_service
app.dependency_overrides[routes_module.get_preferences] = get_preferences
app.dependency_overrides[routes_module.get_repo] = get_repo
app.dependency_overrides[routes_module.get_sim_sensor] = get_sim_sensor
app.dependency_overrides[routes_module.get_sim_lid] = get_sim_lid
app.dependency_overrides[routes_module.get_sim_appearance] = get_sim_appearance

app.include_router(api_router, prefix="/api")
