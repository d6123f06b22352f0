"""
Configuration management module.

Provides centralized configuration loading and validation.
"""

import copy
import os
import yaml
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


DEFAULT_NUMERIC_FEATURES = [
    'top_speed_kmh', 'battery_capacity_kWh', 'torque_nm',
    'acceleration_0_100_s', 'fast_charging_power_kw_dc', 'seats',
    'length_mm', 'width_mm', 'height_mm'
]

DEFAULT_CATEGORICAL_FEATURES = ['fast_charge_port', 'drivetrain']

DEFAULT_TARGET = 'range_km'


@dataclass
class FeatureConfig:
    """Feature schema configuration."""
    numeric_features: List[str] = field(default_factory=lambda: list(DEFAULT_NUMERIC_FEATURES))
    categorical_features: List[str] = field(default_factory=lambda: list(DEFAULT_CATEGORICAL_FEATURES))
    target: str = DEFAULT_TARGET

    @property
    def input_features(self) -> List[str]:
        return self.numeric_features + self.categorical_features

    @property
    def required_columns(self) -> List[str]:
        return self.input_features + [self.target]


@dataclass
class ModelConfig:
    """Network architecture configuration."""
    hidden_units: List[int] = field(default_factory=lambda: [32, 16])
    dropout_rates: List[float] = field(default_factory=lambda: [0.2, 0.15])
    learning_rate: float = 0.001
    device: str = 'cpu'


@dataclass
class TrainingConfig:
    """Training loop configuration."""
    epochs: int = 100
    batch_size: int = 16
    shuffle: bool = True
    train_ratio: float = 0.8
    seed: Optional[int] = None
    chart_every: int = 5


class Config:
    """
    Central configuration manager.

    Loads configuration from YAML file and provides typed access
    to all settings with validation.
    """

    REQUIRED_SECTIONS = ['data', 'features', 'model', 'training']

    def __init__(
        self,
        config_path: str = "config/config.yaml",
        raw_config: Optional[Dict[str, Any]] = None,
        setup_logging: bool = True
    ):
        """
        Initialize configuration.

        Args:
            config_path: Path to YAML configuration file
            raw_config: Pre-loaded configuration dictionary (skips the file)
            setup_logging: Whether to configure the root logger
        """
        self.config_path = Path(config_path)
        self._raw_config: Dict[str, Any] = {}

        if raw_config is not None:
            self._raw_config = copy.deepcopy(raw_config)
        else:
            self._load_config()

        if setup_logging:
            self._setup_logging()
        self._validate_config()

    @classmethod
    def from_dict(cls, raw_config: Dict[str, Any], setup_logging: bool = False) -> 'Config':
        """Build a configuration from an in-memory dictionary."""
        return cls(config_path="<dict>", raw_config=raw_config, setup_logging=setup_logging)

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        with open(self.config_path, 'r') as f:
            self._raw_config = yaml.safe_load(f) or {}

        logger.info(f"Configuration loaded from {self.config_path}")

    def _setup_logging(self) -> None:
        """Configure logging based on settings."""
        log_config = self._raw_config.get('logging', {})
        log_level = getattr(logging, log_config.get('level', 'INFO'))
        log_format = log_config.get('format', '%(asctime)s - %(levelname)s - %(message)s')
        log_file = log_config.get('file')

        handlers: List[logging.Handler] = [logging.StreamHandler()]
        if log_file:
            # Create logs directory
            os.makedirs(os.path.dirname(log_file) or '.', exist_ok=True)
            handlers.append(logging.FileHandler(log_file))

        # Configure root logger
        logging.basicConfig(
            level=log_level,
            format=log_format,
            handlers=handlers
        )

    def _validate_config(self) -> None:
        """Validate configuration values."""
        for section in self.REQUIRED_SECTIONS:
            if section not in self._raw_config:
                raise ValueError(f"Missing required config section: {section}")

        if 'path' not in self._raw_config['data']:
            raise ValueError("Missing data path: path")

        training = self.training_config
        if not 0.0 < training.train_ratio < 1.0:
            raise ValueError(f"train_ratio must be in (0, 1), got {training.train_ratio}")
        if training.epochs < 1:
            raise ValueError(f"epochs must be positive, got {training.epochs}")
        if training.batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {training.batch_size}")

        model = self.model_config
        if len(model.hidden_units) != len(model.dropout_rates):
            raise ValueError("hidden_units and dropout_rates must have the same length")

        logger.debug("Configuration validation passed")

    # ==========================================================================
    # Data Configuration
    # ==========================================================================

    @property
    def data_path(self) -> Path:
        override = os.environ.get('EV_RANGE_DATA_PATH')
        if override:
            return Path(override)
        return Path(self._raw_config['data']['path'])

    @property
    def models_path(self) -> Path:
        return Path(self._raw_config['data'].get('models_path', 'models'))

    @property
    def visualizations_path(self) -> Path:
        return Path(self._raw_config['data'].get('visualizations_path', 'reports/figures'))

    # ==========================================================================
    # Feature Configuration
    # ==========================================================================

    @property
    def feature_config(self) -> FeatureConfig:
        """Get feature schema configuration."""
        feat = self._raw_config['features']

        return FeatureConfig(
            numeric_features=list(feat.get('numeric', DEFAULT_NUMERIC_FEATURES)),
            categorical_features=list(feat.get('categorical', DEFAULT_CATEGORICAL_FEATURES)),
            target=feat.get('target', DEFAULT_TARGET)
        )

    # ==========================================================================
    # Model Configuration
    # ==========================================================================

    @property
    def model_config(self) -> ModelConfig:
        """Get network architecture configuration."""
        model = self._raw_config['model']

        return ModelConfig(
            hidden_units=list(model.get('hidden_units', [32, 16])),
            dropout_rates=list(model.get('dropout_rates', [0.2, 0.15])),
            learning_rate=float(model.get('learning_rate', 0.001)),
            device=model.get('device', 'cpu')
        )

    @property
    def training_config(self) -> TrainingConfig:
        """Get training loop configuration."""
        training = self._raw_config['training']
        seed = training.get('seed')

        return TrainingConfig(
            epochs=int(training.get('epochs', 100)),
            batch_size=int(training.get('batch_size', 16)),
            shuffle=bool(training.get('shuffle', True)),
            train_ratio=float(training.get('train_ratio', 0.8)),
            seed=int(seed) if seed is not None else None,
            chart_every=int(training.get('chart_every', 5))
        )

    # ==========================================================================
    # Utility Methods
    # ==========================================================================

    def override(self, section: str, key: str, value: Any) -> None:
        """Override a single setting (used by command line flags)."""
        self._raw_config.setdefault(section, {})[key] = value
        self._validate_config()

    def to_dict(self) -> Dict[str, Any]:
        """Return raw configuration dictionary."""
        return copy.deepcopy(self._raw_config)

    def __repr__(self) -> str:
        return f"Config(path={self.config_path}, epochs={self.training_config.epochs})"
