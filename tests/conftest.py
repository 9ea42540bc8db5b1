"""Pytest shared setup."""

from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import polars as pl
import pytest

from walkthroughs.domain.entities import PRICE_RANGES
from walkthroughs.pipelines.config import (
    AustinHousingConfig,
    NetflixTitlesConfig,
    PipelineConfig,
    RaceConfig,
)


REPO_ROOT = Path(__file__).resolve().parents[1]

FILLER_WORDS = ["home", "kitchen", "room", "beautiful", "open", "floor", "plan", "yard"]


def _housing_frame(n_per_range: int = 40, seed: int = 7) -> pl.DataFrame:
    rng = np.random.default_rng(seed)
    rows = []
    uid = 0
    for level, price_range in enumerate(PRICE_RANGES):
        for _ in range(n_per_range):
            words = list(rng.choice(FILLER_WORDS, size=6))
            if rng.random() < level / 4:
                words.append("luxury")
            if rng.random() < (4 - level) / 4:
                words.append("fixer")
            rng.shuffle(words)
            if uid % 50 == 0:
                city = "del valle"
            elif uid % 10 == 1:
                city = "pflugerville"
            else:
                city = "austin"
            rows.append({
                "uid": str(uid),
                "city": city,
                "description": " ".join(words).capitalize() + ".",
                "homeType": "Condo" if uid % 4 == 0 else "Single Family",
                "latitude": 30.2 + 0.02 * level + rng.normal(0, 0.01),
                "longitude": -97.7 - 0.02 * level + rng.normal(0, 0.01),
                "garageSpaces": int(rng.integers(0, 3)),
                "hasSpa": bool(rng.random() < 0.1 * level),
                "yearBuilt": int(rng.integers(1950, 2020)),
                "numOfPatioAndPorchFeatures": int(rng.integers(0, 3)),
                "lotSizeSqFt": float(5000 + 1500 * level + rng.normal(0, 500)),
                "avgSchoolRating": float(4 + level + rng.normal(0, 0.5)),
                "MedianStudentsPerTeacher": int(rng.integers(12, 18)),
                "numOfBathrooms": float(1 + level // 2 + rng.integers(0, 2)),
                "numOfBedrooms": int(2 + level // 2 + rng.integers(0, 2)),
                "priceRange": price_range,
            })
            uid += 1
    return pl.DataFrame(rows)


def _netflix_frame(n_movies: int = 80, n_shows: int = 40, seed: int = 11) -> pl.DataFrame:
    rng = np.random.default_rng(seed)
    movie_words = ["film", "young", "woman", "love", "man", "journey", "night"]
    show_words = ["series", "season", "docuseries", "episodes", "friends", "lives", "family"]
    shared = ["story", "world", "new", "city", "secret", "life"]
    rows = []
    for i in range(n_movies + n_shows):
        is_movie = i < n_movies
        own = movie_words if is_movie else show_words
        words = list(rng.choice(own, size=4)) + list(rng.choice(shared, size=4))
        rng.shuffle(words)
        rows.append({
            "show_id": f"s{i}",
            "type": "Movie" if is_movie else "TV Show",
            "title": f"Title {i}",
            "description": "A " + " ".join(words) + ".",
        })
    return pl.DataFrame(rows)


@pytest.fixture
def housing_df() -> pl.DataFrame:
    return _housing_frame()


@pytest.fixture
def netflix_df() -> pl.DataFrame:
    return _netflix_frame()


@pytest.fixture
def housing_csv(tmp_path: Path, housing_df: pl.DataFrame) -> Path:
    path = tmp_path / "austin_housing.csv"
    housing_df.write_csv(path)
    return path


@pytest.fixture
def netflix_csv(tmp_path: Path, netflix_df: pl.DataFrame) -> Path:
    path = tmp_path / "netflix_titles.csv"
    netflix_df.write_csv(path)
    return path


@pytest.fixture
def small_config() -> PipelineConfig:
    """Configuration small enough for end-to-end runs in tests."""
    return PipelineConfig(
        race=RaceConfig(burn_in=2, num_ties=2),
        austin_housing=AustinHousingConfig(
            folds=3,
            trees=15,
            grid_size=3,
            mtry=(2, 4),
            n_top_words=20,
        ),
        netflix_titles=NetflixTitlesConfig(folds=3, max_tokens=50, n_top_terms=5),
    )


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")
