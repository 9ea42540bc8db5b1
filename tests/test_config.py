from pathlib import Path

import pytest
from pydantic import ValidationError

from walkthroughs.pipelines.config import (
    AustinHousingConfig,
    NetflixTitlesConfig,
    PipelineConfig,
    get_default_config,
    load_config,
)


REPO_ROOT = Path(__file__).resolve().parents[1]


def test_defaults_match_the_studies() -> None:
    config = get_default_config()

    assert config.split.prop == 0.75
    assert config.split.seed == 123
    assert config.race.burn_in == 3
    assert config.austin_housing.folds == 5
    assert config.austin_housing.trees == 1000
    assert config.austin_housing.grid_size == 20
    assert config.netflix_titles.folds == 10
    assert config.netflix_titles.max_tokens == 1000
    assert config.netflix_titles.event_level == "Movie"


def test_repository_config_file_matches_defaults() -> None:
    loaded = load_config(REPO_ROOT / "pipeline_config.yml")

    assert loaded == get_default_config(REPO_ROOT)


def test_load_config_resolves_relative_paths(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yml"
    config_path.write_text(
        "paths:\n  data_dir: inputs\n  output_dir: /abs/out\n"
        "austin_housing:\n  grid_size: 4\n  mtry: [2, 3]\n"
    )

    config = load_config(config_path)

    assert config.paths.data_dir == tmp_path / "inputs"
    assert config.paths.output_dir == Path("/abs/out")
    assert config.paths.austin_housing_path == tmp_path / "inputs" / "austin_housing.csv"
    assert config.austin_housing.grid_size == 4
    assert config.austin_housing.mtry == (2, 3)


def test_load_config_empty_file_gives_defaults(tmp_path: Path) -> None:
    config_path = tmp_path / "empty.yml"
    config_path.write_text("")

    assert load_config(config_path, base_path=Path(".")) == get_default_config(Path("."))


def test_load_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yml")


def test_load_config_applies_overrides_after_the_file(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yml"
    config_path.write_text("austin_housing:\n  folds: 4\n  grid_size: 8\n")

    config = load_config(config_path, overrides={"austin_housing": {"folds": 3, "grid_size": None}})

    assert config.austin_housing.folds == 3
    assert config.austin_housing.grid_size == 8
    assert config.paths.data_dir == tmp_path / "data"
    with pytest.raises(ValueError, match="Unknown config section: modeling"):
        load_config(config_path, overrides={"modeling": {"folds": 3}})
    with pytest.raises(ValidationError):
        get_default_config(overrides={"split": {"prop": 1.5}})
    assert get_default_config(overrides={"split": {"seed": 9}}).split.seed == 9


def test_invalid_values_are_rejected() -> None:
    with pytest.raises(ValidationError):
        NetflixTitlesConfig(folds=1)
    with pytest.raises(ValidationError):
        AustinHousingConfig(tree_depth=(10, 5))
    with pytest.raises(ValidationError):
        PipelineConfig.model_validate({"race": {"burn_in": 1}})


def test_config_is_frozen() -> None:
    config = get_default_config()

    with pytest.raises(ValidationError):
        config.split.seed = 1


def test_with_overrides_skips_none_and_revalidates() -> None:
    config = get_default_config()

    updated = config.with_overrides(split={"seed": None}, austin_housing={"folds": 3, "grid_size": None})

    assert updated.split.seed == 123
    assert updated.austin_housing.folds == 3
    assert updated.austin_housing.grid_size == 20
    assert config.austin_housing.folds == 5
    with pytest.raises(ValidationError):
        config.with_overrides(netflix_titles={"folds": 1})
    with pytest.raises(ValueError, match="Unknown config section"):
        config.with_overrides(modeling={"folds": 3})


def test_domain_conversions() -> None:
    config = get_default_config().with_overrides(
        split={"seed": 9}, race={"num_ties": 4}, netflix_titles={"cost": 0.5}
    )

    control = config.to_race_control()
    assert control.burn_in == 3
    assert control.num_ties == 4

    tree = config.to_boosted_tree_config()
    assert tree.trees == 1000
    assert tree.random_state == 9

    svm = config.to_linear_svm_config()
    assert svm.max_tokens == 1000
    assert svm.cost == 0.5
    assert svm.random_state == 9


def test_param_ranges_cover_tuned_parameters() -> None:
    ranges = AustinHousingConfig().param_ranges()

    assert set(ranges) == {"tree_depth", "min_n", "mtry", "sample_size", "learn_rate"}
    assert ranges["tree_depth"].kind == "int"
    assert ranges["learn_rate"].log10
    assert (ranges["learn_rate"].low, ranges["learn_rate"].high) == (-2.0, -1.0)
