"""
Configuration parameters for RDA deployments.

Defines the token and auction parameters a deployment starts with, and
where local state and logs are written.

Amounts are given in display units ("1.0" tokens) and converted to base
units with the token's decimals when a deployment is created.
"""

import json
import os
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import FrozenSet, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from rda.core.ledger.units import parse_units

ENV_PREFIX = "RDA_"


@dataclass
class NetworkConfig:
    """Deployment-wide configuration parameters"""

    network: str = "local"

    # Token parameters
    token_name: str = "Turbulence"
    token_symbol: str = "TBL"
    token_decimals: int = 18
    initial_supply: str = "1000000"  # Whole tokens minted to the deployer

    # Auction parameters
    starting_price: str = "1.0"  # Price of the whole lot at start
    price_decrease_per_second: str = "0.00005"  # Slow linear decay
    duration: int = 60 * 60  # One hour window

    # Paths
    data_dir: Path = Path("data")
    log_dir: Path = Path("logs")

    # Fields set by a config file or RDA_* variables rather than defaults
    overrides: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def initial_supply_units(self) -> int:
        return parse_units(self.initial_supply, self.token_decimals)

    @property
    def starting_price_units(self) -> int:
        return parse_units(self.starting_price, self.token_decimals)

    @property
    def price_decrease_units(self) -> int:
        return parse_units(self.price_decrease_per_second, self.token_decimals)

    @property
    def deployment_path(self) -> Path:
        return self.data_dir / "deployments" / f"{self.network}.json"

    def ensure_dirs(self) -> None:
        """Create necessary directories"""
        self.data_dir.mkdir(exist_ok=True, parents=True)
        self.log_dir.mkdir(exist_ok=True, parents=True)


class _ConfigModel(BaseModel):
    """Validation schema for file and environment overrides."""

    network: str = Field(default="local", min_length=1)
    token_name: str = Field(default="Turbulence", min_length=1)
    token_symbol: str = Field(default="TBL", min_length=1)
    token_decimals: int = Field(default=18, ge=0, le=77)
    initial_supply: str = "1000000"
    starting_price: str = "1.0"
    price_decrease_per_second: str = "0.00005"
    duration: int = Field(default=3600, ge=0)
    data_dir: Path = Path("data")
    log_dir: Path = Path("logs")

    @field_validator("initial_supply", "starting_price", "price_decrease_per_second", mode="before")
    @classmethod
    def _check_amount(cls, value):
        value = str(value)
        # Raises ValueError on negative or malformed amounts
        parse_units(value, 77)
        return value

    @model_validator(mode="after")
    def _check_precision(self):
        for name in ("initial_supply", "starting_price", "price_decrease_per_second"):
            parse_units(getattr(self, name), self.token_decimals)
        return self


def _read_file(path: Path) -> dict:
    if path.suffix == ".toml":
        with path.open("rb") as fh:
            return tomllib.load(fh)
    if path.suffix == ".json":
        return json.loads(path.read_text())
    raise ValueError(f"Unsupported config format: {path.suffix} (use .json or .toml)")


def _read_env() -> dict:
    overrides = {}
    for name in _ConfigModel.model_fields:
        value = os.environ.get(ENV_PREFIX + name.upper())
        if value is not None:
            overrides[name] = value
    return overrides


def load_config(
    config_path: Optional[str] = None,
    env_file: Optional[str] = None,
) -> NetworkConfig:
    """
    Load configuration from file and environment, or use defaults.

    Precedence (highest first): RDA_* environment variables (a .env file
    is loaded first if present), the config file, built-in defaults.

    Args:
        config_path: Optional path to a .json or .toml config file
        env_file: Optional .env path (defaults to ./.env lookup)

    Returns:
        NetworkConfig instance

    Raises:
        ValueError: unreadable file or invalid values
    """
    data = {}
    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise ValueError(f"Config file not found: {path}")
        data.update(_read_file(path))

    load_dotenv(env_file)
    data.update(_read_env())

    try:
        model = _ConfigModel.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc

    return NetworkConfig(**model.model_dump(), overrides=frozenset(model.model_fields_set))


def config_to_dict(config: NetworkConfig) -> dict:
    """JSON-friendly view of a config (paths as strings)."""
    data = asdict(config)
    data["data_dir"] = str(config.data_dir)
    data["log_dir"] = str(config.log_dir)
    data["overrides"] = sorted(config.overrides)
    return data
