from pathlib import Path
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from bounty_hunter.config.defaults import (
    DEFAULT_RESULT_CAPACITY,
    DEFAULT_THREADS,
    DISPATCH_SLOTS_PER_WORKER,
    ENDPOINTS_FILE,
    SECRETS_FILE,
    default_device_dir,
    default_output_dir,
)
from bounty_hunter.scanner.matcher import Category


class CategorySpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: Category
    output_name: str

    @field_validator("output_name")
    @classmethod
    def plain_file_name(cls, v: str) -> str:
        if not v or Path(v).name != v:
            raise ValueError(f"Output name must be a bare file name, got {v!r}")
        return v


DEFAULT_CATEGORIES: Tuple[CategorySpec, ...] = (
    CategorySpec(category=Category.SECRET, output_name=SECRETS_FILE),
    CategorySpec(category=Category.ENDPOINT, output_name=ENDPOINTS_FILE),
)


class PipelineConfig(BaseModel):
    """Immutable settings for one scan run."""
    model_config = ConfigDict(frozen=True)

    root: Path
    output_dir: Path
    worker_count: int = Field(default=DEFAULT_THREADS, ge=1)
    queue_capacity: Optional[int] = Field(default=None, ge=1)
    result_capacity: int = Field(default=DEFAULT_RESULT_CAPACITY, ge=1)
    categories: Tuple[CategorySpec, ...] = DEFAULT_CATEGORIES
    exclude: Tuple[Path, ...] = ()

    @field_validator("categories")
    @classmethod
    def unique_categories(cls, v: Tuple[CategorySpec, ...]) -> Tuple[CategorySpec, ...]:
        if not v:
            raise ValueError("At least one category is required")
        kinds = [spec.category for spec in v]
        names = [spec.output_name for spec in v]
        if len(set(kinds)) != len(kinds) or len(set(names)) != len(names):
            raise ValueError("Categories and their output names must be unique")
        return v

    @property
    def dispatch_capacity(self) -> int:
        if self.queue_capacity is not None:
            return self.queue_capacity
        return self.worker_count * DISPATCH_SLOTS_PER_WORKER

    def output_path(self, spec: CategorySpec) -> Path:
        return self.output_dir / spec.output_name


class HunterConfig(BaseModel):
    """Settings for a full extraction + scan run, built from the CLI."""
    model_config = ConfigDict(frozen=True)

    apk_path: Path
    package: str
    output_dir: Optional[Path] = None
    device_dir: Optional[str] = None
    mobsf: bool = True
    traffic: bool = False
    verbose: bool = False
    threads: int = Field(default=DEFAULT_THREADS, ge=1)

    @field_validator("package")
    @classmethod
    def non_empty_package(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Package name must not be empty")
        return v

    @model_validator(mode="before")
    @classmethod
    def fill_defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        package = str(data.get("package") or "").strip()
        if package:
            data = dict(data)
            if not data.get("output_dir"):
                data["output_dir"] = default_output_dir(package)
            if not data.get("device_dir"):
                data["device_dir"] = default_device_dir(package)
        return data
