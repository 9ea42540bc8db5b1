"""Configuration loader for the walkthrough pipelines.

Provides typed configuration loading from YAML files with
sensible defaults and validation using Pydantic.
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

from walkthroughs.domain.entities import BoostedTreeConfig, LinearSvmConfig, RaceControl
from walkthroughs.tuning.grid import ParamRange


class PathsConfig(BaseModel):
    """Configuration for file system paths."""

    model_config = {"frozen": True}

    data_dir: Path = Field(default=Path("data"))
    output_dir: Path = Field(default=Path("artifacts"))
    austin_housing_file: str = Field(default="austin_housing.csv")
    netflix_titles_file: str = Field(default="netflix_titles.csv")

    @property
    def austin_housing_path(self) -> Path:
        return self.data_dir / self.austin_housing_file

    @property
    def netflix_titles_path(self) -> Path:
        return self.data_dir / self.netflix_titles_file


class SplitConfig(BaseModel):
    """Configuration for the initial train/test split."""

    model_config = {"frozen": True}

    prop: float = Field(default=0.75, gt=0, lt=1)
    seed: int = Field(default=123)


class RaceConfig(BaseModel):
    """Configuration for ANOVA racing."""

    model_config = {"frozen": True}

    burn_in: int = Field(default=3, ge=2)
    num_ties: int = Field(default=10, ge=1)
    alpha: float = Field(default=0.05, gt=0, lt=1)
    randomize: bool = Field(default=True)


class AustinHousingConfig(BaseModel):
    """Configuration for the Austin housing price-range study."""

    model_config = {"frozen": True}

    folds: int = Field(default=5, ge=2)
    trees: int = Field(default=1000, ge=1)
    grid_size: int = Field(default=20, ge=1)
    tree_depth: tuple[int, int] = Field(default=(5, 10))
    min_n: tuple[int, int] = Field(default=(10, 40))
    mtry: tuple[int, int] = Field(default=(5, 10))
    sample_size: tuple[float, float] = Field(default=(0.5, 1.0))
    learn_rate_log10: tuple[float, float] = Field(default=(-2.0, -1.0))
    n_top_words: int = Field(default=100, ge=1)
    n_signal_words: int = Field(default=12, ge=1)
    signal_alpha: float = Field(default=0.05, gt=0, lt=1)
    other_threshold: float = Field(default=0.05, ge=0, lt=1)
    n_jobs: int = Field(default=1)

    @field_validator("tree_depth", "min_n", "mtry", "sample_size", "learn_rate_log10")
    @classmethod
    def check_ordered(cls, value: tuple) -> tuple:
        low, high = value
        if low > high:
            raise ValueError(f"range lower bound {low} exceeds upper bound {high}")
        return value

    def param_ranges(self) -> dict[str, ParamRange]:
        """Search space for the boosted tree race."""
        return {
            "tree_depth": ParamRange(*self.tree_depth, kind="int"),
            "min_n": ParamRange(*self.min_n, kind="int"),
            "mtry": ParamRange(*self.mtry, kind="int"),
            "sample_size": ParamRange(*self.sample_size),
            "learn_rate": ParamRange(*self.learn_rate_log10, log10=True),
        }


class NetflixTitlesConfig(BaseModel):
    """Configuration for the Netflix title-type study."""

    model_config = {"frozen": True}

    folds: int = Field(default=10, ge=2)
    max_tokens: int = Field(default=1000, ge=1)
    cost: float = Field(default=1.0, gt=0)
    smote_neighbors: int = Field(default=5, ge=1)
    event_level: str = Field(default="Movie")
    n_top_terms: int = Field(default=15, ge=1)
    n_jobs: int = Field(default=1)


class PipelineConfig(BaseModel):
    """Complete pipeline configuration."""

    model_config = {"frozen": True}

    paths: PathsConfig = Field(default_factory=PathsConfig)
    split: SplitConfig = Field(default_factory=SplitConfig)
    race: RaceConfig = Field(default_factory=RaceConfig)
    austin_housing: AustinHousingConfig = Field(default_factory=AustinHousingConfig)
    netflix_titles: NetflixTitlesConfig = Field(default_factory=NetflixTitlesConfig)

    def with_base_path(self, base_path: Path) -> "PipelineConfig":
        """Return a new config with paths resolved against base_path."""
        def resolve(p: Path) -> Path:
            if not p.is_absolute():
                return base_path / p
            return p

        paths = self.paths.model_copy(update={
            "data_dir": resolve(self.paths.data_dir),
            "output_dir": resolve(self.paths.output_dir),
        })
        return self.model_copy(update={"paths": paths})

    def with_overrides(self, **sections: dict) -> "PipelineConfig":
        """Return a new config with fields replaced per section.

        ``None`` values are ignored so CLI arguments can be passed through
        unconditionally. Overrides are validated like file values.

        Raises:
            ValueError: If a keyword is not a config section
            pydantic.ValidationError: If an overridden value fails validation
        """
        data = self.model_dump()
        for section, values in sections.items():
            if section not in data:
                raise ValueError(f"Unknown config section: {section}")
            data[section].update({k: v for k, v in values.items() if v is not None})
        return PipelineConfig.model_validate(data)

    def to_race_control(self) -> RaceControl:
        """Convert to domain RaceControl entity."""
        return RaceControl(
            burn_in=self.race.burn_in,
            num_ties=self.race.num_ties,
            alpha=self.race.alpha,
            randomize=self.race.randomize,
        )

    def to_boosted_tree_config(self) -> BoostedTreeConfig:
        """Fixed boosted tree settings; tuned parameters come from the race."""
        return BoostedTreeConfig(
            trees=self.austin_housing.trees,
            random_state=self.split.seed,
        )

    def to_linear_svm_config(self) -> LinearSvmConfig:
        """Convert to domain LinearSvmConfig entity."""
        return LinearSvmConfig(
            max_tokens=self.netflix_titles.max_tokens,
            cost=self.netflix_titles.cost,
            smote_neighbors=self.netflix_titles.smote_neighbors,
            random_state=self.split.seed,
        )


def load_config(
    config_path: Path | str,
    base_path: Path | None = None,
    overrides: dict[str, dict] | None = None,
) -> PipelineConfig:
    """Read a YAML file into a validated PipelineConfig.

    Sections missing from the file (``paths``, ``split``, ``race``,
    ``austin_housing``, ``netflix_titles``) keep their defaults. Relative
    ``data_dir`` and ``output_dir`` entries are anchored at ``base_path``,
    which defaults to the directory holding the file, so a config checked
    in next to its data works from any working directory.

    Args:
        config_path: YAML file to read
        base_path: Directory for relative paths (default: the file's directory)
        overrides: Per-section values applied last via
            :meth:`PipelineConfig.with_overrides`, e.g. CLI arguments

    Returns:
        The merged, validated configuration

    Raises:
        FileNotFoundError: If ``config_path`` is missing
        yaml.YAMLError: If the file is not valid YAML
        ValueError: If ``overrides`` names a section the config lacks
        pydantic.ValidationError: If file or override values fail validation
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    if base_path is None:
        base_path = config_path.parent

    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}

    config = PipelineConfig.model_validate(data).with_base_path(base_path)
    return config.with_overrides(**overrides) if overrides else config


def get_default_config(
    base_path: Path | None = None,
    overrides: dict[str, dict] | None = None,
) -> PipelineConfig:
    """Built-in settings for both studies, as run when no YAML file is given.

    Raises:
        ValueError: If ``overrides`` names a section the config lacks
        pydantic.ValidationError: If an override value fails validation
    """
    config = PipelineConfig()
    if base_path:
        config = config.with_base_path(base_path)
    return config.with_overrides(**overrides) if overrides else config
