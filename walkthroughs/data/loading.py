"""Dataset loading for the walkthroughs.

Both datasets are plain CSV files that may live on disk or behind a URL.
Remote files are downloaded once into a cache directory and parsed with
polars from there.
"""

import hashlib
import logging
import re
from pathlib import Path

import httpx
import polars as pl

from walkthroughs.data.settings import DataSourceSettings, get_settings


logger = logging.getLogger(__name__)

HOUSING_NUMERIC_COLUMNS = [
    "latitude",
    "longitude",
    "garageSpaces",
    "hasSpa",
    "yearBuilt",
    "numOfPatioAndPorchFeatures",
    "lotSizeSqFt",
    "avgSchoolRating",
    "MedianStudentsPerTeacher",
    "numOfBathrooms",
    "numOfBedrooms",
]

HOUSING_NOMINAL_COLUMNS = ["city", "homeType"]

HOUSING_REQUIRED_COLUMNS = [
    "uid",
    *HOUSING_NOMINAL_COLUMNS,
    "description",
    *HOUSING_NUMERIC_COLUMNS,
    "priceRange",
]

NETFLIX_REQUIRED_COLUMNS = ["show_id", "type", "description"]

PRICE_OFFSET = 100_000

_PRICE_PATTERN = re.compile(r"^\s*(\d+)")


def is_remote(source: str | Path) -> bool:
    return isinstance(source, str) and source.startswith(("http://", "https://"))


def fetch_to_cache(url: str, settings: DataSourceSettings | None = None) -> Path:
    """Download ``url`` into the cache directory unless it is already there."""
    settings = settings or get_settings()
    cache_dir = Path(settings.cache_dir)
    cache_dir.mkdir(parents=True, exist_ok=True)

    digest = hashlib.sha256(url.encode("utf-8")).hexdigest()[:12]
    name = Path(httpx.URL(url).path).name or "data.csv"
    target = cache_dir / f"{digest}_{name}"
    if target.exists():
        logger.debug("Using cached copy of %s at %s", url, target)
        return target

    logger.info("Downloading %s", url)
    response = httpx.get(url, timeout=settings.download_timeout, follow_redirects=True)
    response.raise_for_status()
    target.write_bytes(response.content)
    return target


def load_csv(
    source: str | Path,
    settings: DataSourceSettings | None = None,
) -> pl.DataFrame:
    """Read a CSV from a local path or an http(s) URL.

    Raises:
        FileNotFoundError: If a local path does not exist
        httpx.HTTPStatusError: If a download fails
    """
    if is_remote(source):
        path = fetch_to_cache(str(source), settings)
    else:
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"Data file not found: {path}")

    return pl.read_csv(path, infer_schema_length=10_000)


def validate_columns(df: pl.DataFrame, required: list[str], dataset: str) -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"{dataset} data is missing required columns: {', '.join(missing)}")


def parse_price_range(label: str) -> int:
    """Representative price for a ``priceRange`` label.

    The lower bound of the bucket plus 100,000, so ``"0-250000"`` becomes
    100,000 and ``"650000+"`` becomes 750,000.
    """
    match = _PRICE_PATTERN.match(label)
    if match is None:
        raise ValueError(f"Unrecognized price range: {label!r}")
    return int(match.group(1)) + PRICE_OFFSET


def price_expr(column: str = "priceRange") -> pl.Expr:
    """Polars expression equivalent of :func:`parse_price_range`."""
    return pl.col(column).str.extract(r"^\s*(\d+)", 1).cast(pl.Int64) + PRICE_OFFSET


def prepare_austin_housing(df: pl.DataFrame) -> pl.DataFrame:
    """Validate and tidy a raw Austin housing frame."""
    validate_columns(df, HOUSING_REQUIRED_COLUMNS, "Austin housing")

    has_spa = pl.col("hasSpa")
    if df.schema["hasSpa"] == pl.String:
        has_spa = has_spa.str.to_lowercase() == "true"

    return (
        df.filter(pl.col("priceRange").is_not_null())
        .with_columns([
            pl.col("uid").cast(pl.String),
            pl.col("priceRange").cast(pl.String),
            pl.col("description").cast(pl.String).fill_null(""),
            pl.col("city").cast(pl.String),
            pl.col("homeType").cast(pl.String),
            has_spa.cast(pl.Int8).alias("hasSpa"),
        ])
    )


def prepare_netflix_titles(df: pl.DataFrame) -> pl.DataFrame:
    """Validate and tidy a raw Netflix titles frame."""
    validate_columns(df, NETFLIX_REQUIRED_COLUMNS, "Netflix titles")
    return (
        df.filter(pl.col("type").is_not_null() & pl.col("description").is_not_null())
        .with_columns([
            pl.col("show_id").cast(pl.String),
            pl.col("type").cast(pl.String),
            pl.col("description").cast(pl.String),
        ])
    )


def resolve_source(data: str | Path | None, configured: Path) -> str | Path | None:
    """Explicit source first, then the configured file if it exists.

    ``None`` leaves the choice to the loader, which falls back to the
    settings URL.
    """
    if data is not None:
        return data
    return configured if configured.exists() else None


def load_austin_housing(
    source: str | Path | None = None,
    settings: DataSourceSettings | None = None,
) -> pl.DataFrame:
    settings = settings or get_settings()
    source = source or settings.austin_housing_url
    if source is None:
        raise ValueError(
            "No Austin housing source given; pass a path or set WALKTHROUGHS_AUSTIN_HOUSING_URL"
        )
    return prepare_austin_housing(load_csv(source, settings))


def load_netflix_titles(
    source: str | Path | None = None,
    settings: DataSourceSettings | None = None,
) -> pl.DataFrame:
    settings = settings or get_settings()
    return prepare_netflix_titles(load_csv(source or settings.netflix_titles_url, settings))
