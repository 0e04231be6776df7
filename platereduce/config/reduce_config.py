"""
Configuration for a plate reduction job.
"""

from dataclasses import dataclass, fields
from typing import Dict, Any, Optional

from ..errors import ArgumentError
from ..tiling.partition import DEFAULT_BLOCK_SIZE

_INT_FIELDS = (
    "level",
    "start_trans_id",
    "end_trans_id",
    "transaction_id",
    "job_id",
    "num_jobs",
    "block_size",
)
_STR_FIELDS = ("url", "function")


@dataclass
class ReduceConfig:
    """
    Configuration for one plate reduction job.

    Attributes:
        url: Plate URL
        level: Pyramid level to reduce (-1 means "not chosen")
        start_trans_id: First input transaction id (inclusive)
        end_trans_id: Last input transaction id (inclusive)
        function: Reduction function name
        transaction_id: Transaction id the composites are written under
        job_id: This job's index among num_jobs
        num_jobs: Number of cooperating jobs
        block_size: Work unit edge length in grid cells
    """
    url: str = ""
    level: int = -1
    start_trans_id: int = 0
    end_trans_id: Optional[int] = None
    function: str = "WeightedAvg"
    transaction_id: int = 2000
    job_id: int = 0
    num_jobs: int = 1
    block_size: int = DEFAULT_BLOCK_SIZE

    def __post_init__(self):
        """Validate configuration values."""
        self._validate()

    def _validate(self):
        """Validate all configuration values."""
        for name in _INT_FIELDS:
            value = getattr(self, name)
            if value is None and name == "end_trans_id":
                continue
            # bool is an int subclass; YAML yes/no is not a number here
            if isinstance(value, bool) or not isinstance(value, int):
                raise ArgumentError(f"{name} must be an integer, got {value!r}")

        for name in _STR_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, str):
                raise ArgumentError(f"{name} must be a string, got {value!r}")

        if self.num_jobs < 1:
            raise ArgumentError(f"num_jobs must be >= 1, got {self.num_jobs}")

        if not (0 <= self.job_id < self.num_jobs):
            raise ArgumentError(
                f"job_id must be between 0 and {self.num_jobs - 1}, got {self.job_id}"
            )

        if self.block_size < 1:
            raise ArgumentError(f"block_size must be >= 1, got {self.block_size}")

        if self.end_trans_id is not None and self.end_trans_id < self.start_trans_id:
            raise ArgumentError(
                f"end_trans_id ({self.end_trans_id}) must be >= start_trans_id ({self.start_trans_id})"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "url": self.url,
            "level": self.level,
            "start_trans_id": self.start_trans_id,
            "end_trans_id": self.end_trans_id,
            "function": self.function,
            "transaction_id": self.transaction_id,
            "job_id": self.job_id,
            "num_jobs": self.num_jobs,
            "block_size": self.block_size,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReduceConfig":
        """Create from dictionary (e.g., from YAML config)."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ArgumentError(f"Unknown configuration keys: {sorted(unknown)}")

        return cls(
            url=data.get("url", ""),
            level=data.get("level", -1),
            start_trans_id=data.get("start_trans_id", 0),
            end_trans_id=data.get("end_trans_id"),
            function=data.get("function", "WeightedAvg"),
            transaction_id=data.get("transaction_id", 2000),
            job_id=data.get("job_id", 0),
            num_jobs=data.get("num_jobs", 1),
            block_size=data.get("block_size", DEFAULT_BLOCK_SIZE),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str) -> "ReduceConfig":
        """Load configuration from YAML file."""
        import yaml

        with open(yaml_path, "r") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ArgumentError(f"Invalid configuration file {yaml_path}: {e}") from e

        if not isinstance(data, dict):
            raise ArgumentError(f"Configuration file {yaml_path} must contain a mapping")

        section = data.get("reduce", data)
        if section is None:
            section = {}
        if not isinstance(section, dict):
            raise ArgumentError(f"The reduce section of {yaml_path} must be a mapping")
        return cls.from_dict(section)

    @classmethod
    def default(cls) -> "ReduceConfig":
        """Create default configuration."""
        return cls()

    def require_complete(self) -> None:
        """
        Check the fields a run cannot start without.

        Raises:
            ArgumentError: If the URL or end transaction id is missing
        """
        if not self.url:
            raise ArgumentError("A plate URL is required")
        if self.end_trans_id is None:
            raise ArgumentError("An ending transaction id (end_t) is required")
