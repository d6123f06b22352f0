#!/usr/bin/env python3
"""
Main training script for the EV range pipeline.

Usage:
    python scripts/train.py                          # Train on configured data
    python scripts/train.py --data data/evs.csv      # Specific CSV file
    python scripts/train.py --epochs 50 --seed 42    # Override training settings
    python scripts/train.py --save models/ev.joblib  # Save trained artifacts
    python scripts/train.py --plot                   # Keep a loss chart up to date
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import matplotlib
matplotlib.use('Agg')

from ev_range.config import Config
from ev_range.evaluation import TrainingVisualizer
from ev_range.pipeline import ConsoleProgressReporter, RangePipeline


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="EV Range Training Pipeline"
    )

    parser.add_argument(
        '--config',
        type=str,
        default='config/config.yaml',
        help='Path to configuration file'
    )

    parser.add_argument(
        '--data',
        type=str,
        help='CSV file to train on (default: data.path from config)'
    )

    parser.add_argument(
        '--epochs',
        type=int,
        help='Number of training epochs'
    )

    parser.add_argument(
        '--seed',
        type=int,
        help='Random seed for the split, initialization and shuffling'
    )

    parser.add_argument(
        '--save',
        type=str,
        nargs='?',
        const='',
        help='Save trained artifacts (optionally to the given path)'
    )

    parser.add_argument(
        '--plot',
        action='store_true',
        help='Save the training loss chart while training'
    )

    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )

    return parser.parse_args()


def main():
    """Main entry point."""
    args = parse_args()

    # Load configuration
    config = Config(args.config)

    # Set logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.epochs is not None:
        config.override('training', 'epochs', args.epochs)
    if args.seed is not None:
        config.override('training', 'seed', args.seed)

    visualizer = TrainingVisualizer(config.visualizations_path) if args.plot else None
    reporter = ConsoleProgressReporter(visualizer=visualizer)

    # Initialize pipeline
    pipeline = RangePipeline(config, observers=[reporter])

    print(f"\n{'='*60}")
    print("EV RANGE TRAINING")
    print(f"{'='*60}")
    print(f"Data: {args.data or config.data_path}")
    print(f"Epochs: {config.training_config.epochs}")
    print(f"{'='*60}\n")

    results = asyncio.run(pipeline.run(args.data))

    if not results['success']:
        print(f"\nInitialization failed: {results['error']}")
        sys.exit(1)

    metrics = results['test_metrics']
    print(f"\nTest MAE: {metrics['mae']:.1f} km, RMSE: {metrics['rmse']:.1f} km")

    if args.save is not None:
        saved_path = pipeline.save_artifacts(args.save or None)
        print(f"Artifacts saved to: {saved_path}")

    if args.plot:
        print(f"Charts saved to: {config.visualizations_path}")

    print("\n[OK] Training complete!")
    sys.exit(0)


if __name__ == '__main__':
    main()
