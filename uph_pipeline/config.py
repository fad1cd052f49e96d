"""Pipeline configuration and UPH policy constants."""

from typing import TypeAlias

import tomllib
from dataclasses import dataclass, replace
from pathlib import Path

import yaml

from uph_pipeline.utils.types import AveragingStrategy

ConfigDict: TypeAlias = dict[str, str | int | float | bool | dict]

SECONDS_PER_HOUR = 3600

# A single policy pair applied on every path: 5 minute duration floor,
# UPH accepted in [1, 500].
DEFAULT_MIN_DURATION_HOURS = 5 / 60
DEFAULT_MIN_UPH = 1.0
DEFAULT_MAX_UPH = 500.0
DEFAULT_DATA_SOURCE = "work_cycles_aggregated"

_PROJECT_ROOT = Path(__file__).parent.parent


class PolicyError(ValueError):
    """Raised when UPH policy constants cannot produce a meaningful run."""


@dataclass(frozen=True)
class UphPolicy:
    min_duration_hours: float = DEFAULT_MIN_DURATION_HOURS
    min_uph: float = DEFAULT_MIN_UPH
    max_uph: float = DEFAULT_MAX_UPH
    averaging: AveragingStrategy = AveragingStrategy.MEAN

    def __post_init__(self) -> None:
        if not self.min_duration_hours > 0:
            raise PolicyError(
                f"min_duration_hours must be positive, got {self.min_duration_hours}"
            )
        if not self.min_uph > 0:
            raise PolicyError(f"min_uph must be positive, got {self.min_uph}")
        if not self.min_uph < self.max_uph:
            raise PolicyError(
                f"min_uph ({self.min_uph}) must be below max_uph ({self.max_uph})"
            )
        try:
            strategy = AveragingStrategy(self.averaging)
        except ValueError:
            raise PolicyError(f"Unknown averaging strategy: {self.averaging}") from None
        object.__setattr__(self, "averaging", strategy)

    @classmethod
    def from_mapping(cls, values: dict) -> "UphPolicy":
        """Build a policy from a config table, ignoring unrelated keys."""
        known = {"min_duration_hours", "min_uph", "max_uph", "averaging"}
        kwargs = {key: value for key, value in values.items() if key in known}
        if "min_duration_minutes" in values and "min_duration_hours" not in kwargs:
            kwargs["min_duration_hours"] = float(values["min_duration_minutes"]) / 60
        return cls(**kwargs)


@dataclass(frozen=True)
class PipelineConfig:
    policy: UphPolicy
    input_path: Path
    output_path: Path
    output_format: str = "csv"
    data_source: str = DEFAULT_DATA_SOURCE


def load_pipeline_config(
    env: str = "production",
    overrides: ConfigDict | None = None,
) -> PipelineConfig:
    match env:
        case "production":
            input_path = Path("/data/erp/work_cycles")
            output_path = Path("/data/uph/historical_uph.parquet")
            output_format = "parquet"
        case "staging":
            input_path = Path("/data/staging/erp/work_cycles")
            output_path = Path("/data/staging/uph/historical_uph.parquet")
            output_format = "parquet"
        case "development":
            input_path = Path("data/work_cycles")
            output_path = Path("output/historical_uph.csv")
            output_format = "csv"
        case other:
            raise ValueError(f"Unknown environment: {other}")

    config = PipelineConfig(
        policy=UphPolicy(),
        input_path=input_path,
        output_path=output_path,
        output_format=output_format,
    )
    if overrides:
        config = apply_overrides(config, overrides)
    return config


def apply_overrides(config: PipelineConfig, overrides: ConfigDict) -> PipelineConfig:
    """Layer a [tool.uph]-style table over an environment config."""
    changes: dict = {}
    if policy_table := overrides.get("policy"):
        changes["policy"] = UphPolicy.from_mapping(policy_table)
    for key in ("input_path", "output_path"):
        if key in overrides:
            changes[key] = Path(overrides[key])
    for key in ("output_format", "data_source"):
        if key in overrides:
            changes[key] = str(overrides[key])
    return replace(config, **changes)


def get_env_config(path: Path | None = None) -> ConfigDict:
    """Read UPH config from uph.yaml if present, else from pyproject.toml."""
    if path is None:
        yaml_path = _PROJECT_ROOT / "uph.yaml"
        path = yaml_path if yaml_path.exists() else _PROJECT_ROOT / "pyproject.toml"

    if not path.exists():
        return {}

    match path.suffix:
        case ".yaml" | ".yml":
            with open(path) as f:
                return yaml.safe_load(f) or {}
        case ".toml":
            with open(path, "rb") as f:
                data = tomllib.load(f)
            return data.get("tool", {}).get("uph", {})
        case other:
            raise ValueError(f"Unsupported config format: {other}")
