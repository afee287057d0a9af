from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from ..core.timeutil import now_local
from ..domain.models import Appearance
from ..domain.preferences import PREFERENCE_KEYS, Preferences
from ..drivers.appearance import SimulatedAppearance
from ..drivers.lid import SimulatedLid
from ..sensors.simulated_lux_sensor import PatternConfig, SimulatedLuxSensor
from ..services.switcher import AppearanceService
from ..storage.sqlite_repo import SQLiteRepository
from .schemas import (
    SettingsUpdateRequest,
    SimAppearanceRequest,
    SimLidRequest,
    SimManualRequest,
    SimPatternRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Dependency getters ---
# Placeholders; main.py wires the real ones via app.dependency_overrides.
def get_service() -> AppearanceService:  # overridden in main
    raise RuntimeError("Service dependency not configured")

def get_preferences() -> Preferences:  # overridden in main
    raise RuntimeError("Preferences dependency not configured")

def get_repo() -> SQLiteRepository:  # overridden in main
    raise RuntimeError("Repo dependency not configured")

def get_sim_sensor() -> SimulatedLuxSensor:  # overridden in main
    raise RuntimeError("Simulated sensor dependency not configured")

def get_sim_lid() -> SimulatedLid:  # overridden in main
    raise RuntimeError("Simulated lid dependency not configured")

def get_sim_appearance() -> SimulatedAppearance:  # overridden in main
    raise RuntimeError("Simulated appearance dependency not configured")


async def _apply_updates(prefs: Preferences, repo: SQLiteRepository, updates: dict[str, Any]) -> list[str]:
    try:
        changed = prefs.update(updates)
    except KeyError as e:
        raise HTTPException(status_code=400, detail=f"Unknown setting key: {e.args[0]}")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if changed:
        current = prefs.as_dict()
        await repo.set_settings_batch({key: current[key] for key in changed})
    return changed


@router.get("/live")
async def get_live(
    svc: AppearanceService = Depends(get_service),
    prefs: Preferences = Depends(get_preferences),
):
    live = svc.snapshot()
    return {
        "app": prefs.values.app_name,
        "now_local": now_local(prefs.values.timezone).isoformat(),
        "ambient_light": {
            "value": live.ambient_light_value,
            "sensor_ready": live.sensor_ready,
        },
        "appearance": live.appearance,
        "engine": {
            "active": live.pipeline_active,
            "candidate": live.candidate_appearance,
            "pending_target": live.pending_target,
            "pending_due_local": live.pending_due_local.isoformat() if live.pending_due_local else None,
            "time_override_active": live.time_override_active,
            "auto_mode_enabled": live.auto_mode_enabled,
            "last_decision": live.last_decision,
            "last_reason": live.last_reason,
        },
    }


@router.post("/auto-mode/enable")
async def auto_mode_enable(
    prefs: Preferences = Depends(get_preferences),
    repo: SQLiteRepository = Depends(get_repo),
):
    await _apply_updates(prefs, repo, {"is_auto_mode_enabled": True})
    return {"ok": True, "enabled": prefs.values.is_auto_mode_enabled}


@router.post("/auto-mode/disable")
async def auto_mode_disable(
    prefs: Preferences = Depends(get_preferences),
    repo: SQLiteRepository = Depends(get_repo),
):
    await _apply_updates(prefs, repo, {"is_auto_mode_enabled": False})
    return {"ok": True, "enabled": prefs.values.is_auto_mode_enabled}


@router.get("/settings")
async def get_settings(prefs: Preferences = Depends(get_preferences)):
    return {"settings": prefs.as_dict(), "runtime_keys": sorted(PREFERENCE_KEYS)}


@router.put("/settings")
async def update_settings(
    req: SettingsUpdateRequest,
    prefs: Preferences = Depends(get_preferences),
    repo: SQLiteRepository = Depends(get_repo),
):
    changed = await _apply_updates(prefs, repo, req.updates)
    return {"ok": True, "updated_keys": changed}


@router.get("/time-override")
async def get_time_override(
    svc: AppearanceService = Depends(get_service),
    prefs: Preferences = Depends(get_preferences),
):
    window = prefs.time_override()
    return {
        "enabled": window.enabled,
        "window": window.label,
        "active": svc.engine.in_time_override(),
    }


@router.post("/wake")
async def wake(
    svc: AppearanceService = Depends(get_service),
    prefs: Preferences = Depends(get_preferences),
):
    svc.notify_wake()
    return {
        "ok": True,
        "accepted": svc.pipeline_active,
        "delay_s": prefs.values.wake_settle_seconds,
    }


# --- Simulation endpoints ---
@router.get("/sim/status")
async def sim_status(
    sensor: SimulatedLuxSensor = Depends(get_sim_sensor),
    lid: SimulatedLid = Depends(get_sim_lid),
    appearance: SimulatedAppearance = Depends(get_sim_appearance),
):
    return {
        "sensor": sensor.status(),
        "lid_closed": lid.closed,
        "appearance": str(appearance.get_current_appearance()),
    }


@router.post("/sim/enable")
async def sim_enable(sensor: SimulatedLuxSensor = Depends(get_sim_sensor)):
    sensor.enable()
    return {"ok": True, "enabled": True}


@router.post("/sim/disable")
async def sim_disable(sensor: SimulatedLuxSensor = Depends(get_sim_sensor)):
    sensor.disable()
    return {"ok": True, "enabled": False}


@router.post("/sim/lux/manual")
async def sim_set_manual(req: SimManualRequest, sensor: SimulatedLuxSensor = Depends(get_sim_sensor)):
    sensor.set_manual(req.lux)
    return {"ok": True, "mode": "manual", "lux": req.lux}


@router.post("/sim/lux/pattern")
async def sim_set_pattern(req: SimPatternRequest, sensor: SimulatedLuxSensor = Depends(get_sim_sensor)):
    cfg = PatternConfig(**req.model_dump())
    sensor.set_pattern(cfg)
    return {"ok": True, "pattern": req.model_dump()}


@router.post("/sim/lid")
async def sim_set_lid(req: SimLidRequest, lid: SimulatedLid = Depends(get_sim_lid)):
    lid.closed = req.closed
    return {"ok": True, "lid_closed": lid.closed}


@router.post("/sim/appearance")
async def sim_set_appearance(
    req: SimAppearanceRequest,
    appearance: SimulatedAppearance = Depends(get_sim_appearance),
):
    appearance.set_appearance(Appearance(req.appearance))
    return {"ok": True, "appearance": str(appearance.get_current_appearance())}
