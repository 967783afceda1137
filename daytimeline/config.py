"""
Configuration management using Pydantic models loaded from YAML.
"""

from enum import Enum
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_CATEGORY_COLOR = "#d9d9d9"
UNKNOWN_CATEGORY_NAME = "unknown"


class ClickCreatePolicy(str, Enum):
    """What a create gesture without pointer movement does on commit."""
    REJECT = "reject"
    IGNORE = "ignore"
    EXPAND = "expand"


class CategoryConfig(BaseModel):
    """A time slot category (display name and colour)."""
    id: str
    name: str
    color: str = DEFAULT_CATEGORY_COLOR
    description: Optional[str] = None
    is_track_time: bool = True


def _default_categories() -> List[CategoryConfig]:
    return [
        CategoryConfig(id="project", name="Project", color="#722ed1"),
        CategoryConfig(id="study", name="Study", color="#52c41a"),
        CategoryConfig(id="work", name="Work", color="#1677ff"),
        CategoryConfig(id="rest", name="Rest", color="#faad14"),
        CategoryConfig(id="entertainment", name="Entertainment", color="#eb2f96"),
        CategoryConfig(id="exercise", name="Exercise", color="#fa541c"),
        CategoryConfig(id="eat", name="Eat", color="#fa8c16"),
        CategoryConfig(id="wash", name="Wash", color="#13c2c2"),
        CategoryConfig(id="commuting", name="Commuting", color="#2f54eb"),
        CategoryConfig(id="finance-investment", name="Finance", color="#f5222d"),
        CategoryConfig(id="other", name="Other", color="#bfbfbf"),
    ]


def get_category_color(category_id: str, categories: List[CategoryConfig]) -> str:
    """Look up a category colour, falling back to neutral grey."""
    for category in categories:
        if category.id == category_id:
            return category.color or DEFAULT_CATEGORY_COLOR
    return DEFAULT_CATEGORY_COLOR


def get_category_name(category_id: str, categories: List[CategoryConfig]) -> str:
    """Look up a category display name, falling back to ``unknown``."""
    for category in categories:
        if category.id == category_id:
            return category.name or UNKNOWN_CATEGORY_NAME
    return UNKNOWN_CATEGORY_NAME


class TrackerConfig(BaseModel):
    """Timeline editing rules and the category taxonomy."""
    categories: List[CategoryConfig] = Field(default_factory=_default_categories)
    default_category_id: str = "study"
    min_slot_duration: int = 15
    max_slot_duration: int = 480
    grid_size: int = 15
    enforce_duration_on_drag: bool = False
    click_create: ClickCreatePolicy = ClickCreatePolicy.EXPAND

    @field_validator("min_slot_duration", "max_slot_duration", "grid_size")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Durations and grid size must be positive minute counts."""
        if value <= 0:
            raise ValueError(f"value must be greater than zero, got {value}")
        return value

    @field_validator("categories")
    @classmethod
    def validate_categories(cls, value: List[CategoryConfig]) -> List[CategoryConfig]:
        """Ensure category ids are unique."""
        seen: set[str] = set()
        for category in value:
            if category.id in seen:
                raise ValueError(f"Duplicate category id detected: {category.id}")
            seen.add(category.id)
        return value

    @model_validator(mode="after")
    def validate_consistency(self) -> "TrackerConfig":
        """Cross-field checks."""
        if self.min_slot_duration > self.max_slot_duration:
            raise ValueError("min_slot_duration must not exceed max_slot_duration")
        if self.categories and self.find_category(self.default_category_id) is None:
            raise ValueError(
                f"default_category_id '{self.default_category_id}' is not a configured category"
            )
        return self

    def find_category(self, category_id: str) -> CategoryConfig | None:
        """Find a category by id."""
        for category in self.categories:
            if category.id == category_id:
                return category
        return None

    def category_color(self, category_id: str) -> str:
        return get_category_color(category_id, self.categories)

    def category_name(self, category_id: str) -> str:
        return get_category_name(category_id, self.categories)


class ApiConfig(BaseModel):
    """Remote time-record store settings."""
    base_url: str
    access_token: str = ""
    timeout: int = 30

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class AppConfig(BaseModel):
    """Application configuration."""
    api: Optional[ApiConfig] = None
    tracker: TrackerConfig = Field(default_factory=TrackerConfig)
    mock_data_file: Path = Path("mock_time_records.json")

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    config_path = Path.cwd() / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
