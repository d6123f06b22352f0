"""Pytest configuration and shared fixtures."""

import asyncio
from pathlib import Path
from typing import Any, Dict, List

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from ev_range.config import Config, DEFAULT_CATEGORICAL_FEATURES, DEFAULT_NUMERIC_FEATURES

COLUMNS = ["brand"] + DEFAULT_NUMERIC_FEATURES + DEFAULT_CATEGORICAL_FEATURES + ["range_km"]

PORTS = ["CCS", "CHAdeMO", "NACS"]
DRIVETRAINS = ["AWD", "FWD", "RWD"]


def make_vehicle_rows(n: int, seed: int = 0) -> List[Dict[str, Any]]:
    """Generate plausible vehicle records whose range grows with battery size."""
    rng = np.random.default_rng(seed)
    rows = []

    for i in range(n):
        battery = float(rng.uniform(40, 110))
        drivetrain = DRIVETRAINS[i % len(DRIVETRAINS)]
        penalty = 25.0 if drivetrain == "AWD" else 0.0
        rows.append({
            "brand": f"Brand{i % 7}",
            "top_speed_kmh": float(rng.integers(140, 260)),
            "battery_capacity_kWh": round(battery, 1),
            "torque_nm": float(rng.integers(200, 800)),
            "acceleration_0_100_s": round(float(rng.uniform(3.0, 10.0)), 1),
            "fast_charging_power_kw_dc": float(rng.integers(50, 250)),
            "seats": float(rng.choice([4, 5, 7])),
            "length_mm": float(rng.integers(3800, 5200)),
            "width_mm": float(rng.integers(1700, 2000)),
            "height_mm": float(rng.integers(1400, 1750)),
            "fast_charge_port": PORTS[i % len(PORTS)],
            "drivetrain": drivetrain,
            "range_km": round(5.5 * battery - penalty + float(rng.normal(0, 10)), 0),
        })

    return rows


def rows_to_csv(rows: List[Dict[str, Any]], columns: List[str] = COLUMNS) -> str:
    """Render records as CSV text; None becomes an empty cell."""
    lines = [",".join(columns)]
    for row in rows:
        lines.append(",".join("" if row.get(c) is None else str(row.get(c)) for c in columns))
    return "\n".join(lines) + "\n"


def run(coro):
    """Drive a coroutine to completion."""
    return asyncio.run(coro)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def vehicle_rows() -> List[Dict[str, Any]]:
    """Forty synthetic vehicle records."""
    return make_vehicle_rows(40)


@pytest.fixture
def vehicle_frame(vehicle_rows) -> pd.DataFrame:
    """Synthetic records as an object-dtype frame, as the loader returns them."""
    return pd.DataFrame(vehicle_rows, columns=COLUMNS, dtype=object)


@pytest.fixture
def vehicle_csv(tmp_path: Path, vehicle_rows) -> Path:
    """Synthetic records written to a CSV file."""
    path = tmp_path / "vehicles.csv"
    path.write_text(rows_to_csv(vehicle_rows), encoding="utf-8")
    return path


@pytest.fixture
def base_config(tmp_path: Path) -> Dict[str, Any]:
    """Create a minimal configuration dictionary for testing."""
    return {
        "data": {
            "path": str(tmp_path / "vehicles.csv"),
            "models_path": str(tmp_path / "models"),
            "visualizations_path": str(tmp_path / "figures"),
        },
        "features": {
            "numeric": list(DEFAULT_NUMERIC_FEATURES),
            "categorical": list(DEFAULT_CATEGORICAL_FEATURES),
            "target": "range_km",
        },
        "model": {
            "hidden_units": [32, 16],
            "dropout_rates": [0.2, 0.15],
            "learning_rate": 0.01,
            "device": "cpu",
        },
        "training": {
            "epochs": 5,
            "batch_size": 16,
            "shuffle": True,
            "train_ratio": 0.8,
            "seed": 7,
            "chart_every": 5,
        },
    }


@pytest.fixture
def config(base_config) -> Config:
    """Configuration built from the minimal dictionary."""
    return Config.from_dict(base_config)
