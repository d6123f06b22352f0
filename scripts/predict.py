#!/usr/bin/env python3
"""
Prediction script for a single vehicle.

Usage:
    python scripts/predict.py --top-speed 200 --battery 75 --torque 420 \\
        --acceleration 5.8 --fast-charging 170 --seats 5 \\
        --length 4750 --width 1850 --height 1600 \\
        --port CCS --drivetrain AWD
    python scripts/predict.py --artifacts models/ev.joblib ... --format json
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from ev_range.config import Config
from ev_range.exceptions import RangePredictorError
from ev_range.pipeline import RangePipeline

# Command line flag -> feature name
FEATURE_FLAGS = {
    'top_speed': 'top_speed_kmh',
    'battery': 'battery_capacity_kWh',
    'torque': 'torque_nm',
    'acceleration': 'acceleration_0_100_s',
    'fast_charging': 'fast_charging_power_kw_dc',
    'seats': 'seats',
    'length': 'length_mm',
    'width': 'width_mm',
    'height': 'height_mm',
    'port': 'fast_charge_port',
    'drivetrain': 'drivetrain',
}


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="EV Range Prediction"
    )

    parser.add_argument(
        '--config',
        type=str,
        default='config/config.yaml',
        help='Path to configuration file'
    )

    parser.add_argument(
        '--artifacts',
        type=str,
        help='Saved artifacts (default: <models_path>/ev_range.joblib)'
    )

    parser.add_argument(
        '--format',
        type=str,
        choices=['table', 'json'],
        default='table',
        help='Output format'
    )

    specs = parser.add_argument_group('vehicle specifications')
    for flag, feature in FEATURE_FLAGS.items():
        specs.add_argument(
            f"--{flag.replace('_', '-')}",
            dest=flag,
            type=str,
            help=feature
        )

    return parser.parse_args()


def main():
    """Main entry point."""
    args = parse_args()

    config = Config(args.config)
    artifacts = Path(args.artifacts) if args.artifacts else config.models_path / "ev_range.joblib"

    pipeline = RangePipeline(config)
    try:
        pipeline.restore(artifacts)
    except FileNotFoundError as e:
        print(f"{e}. Train a model first with scripts/train.py --save")
        sys.exit(1)

    raw = {
        feature: getattr(args, flag)
        for flag, feature in FEATURE_FLAGS.items()
        if getattr(args, flag) is not None
    }

    try:
        range_km = asyncio.run(pipeline.predict_form(raw))
    except RangePredictorError as e:
        print(f"Prediction failed: {e}")
        sys.exit(1)

    if args.format == 'json':
        print(json.dumps({'input': raw, 'range_km': range_km}, indent=2))
    else:
        print(f"\n{'='*60}")
        print("EV RANGE PREDICTION")
        print(f"{'='*60}")
        for feature, value in raw.items():
            print(f"  {feature:28s} {value}")
        print("-" * 60)
        print(f"  {'Predicted range':28s} {range_km} km")
        print(f"{'='*60}\n")


if __name__ == '__main__':
    main()
