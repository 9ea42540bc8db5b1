from pathlib import Path

import httpx
import polars as pl
import pytest

from walkthroughs.data.loading import (
    fetch_to_cache,
    is_remote,
    load_austin_housing,
    load_csv,
    load_netflix_titles,
    parse_price_range,
    prepare_austin_housing,
    prepare_netflix_titles,
    price_expr,
    resolve_source,
)
from walkthroughs.data.settings import DataSourceSettings
from walkthroughs.domain.entities import PRICE_RANGES


def test_parse_price_range_uses_lower_bound_plus_offset() -> None:
    assert parse_price_range("0-250000") == 100_000
    assert parse_price_range("350000-450000") == 450_000
    assert parse_price_range("650000+") == 750_000
    with pytest.raises(ValueError):
        parse_price_range("unknown")


def test_price_expr_matches_parser() -> None:
    df = pl.DataFrame({"priceRange": PRICE_RANGES})

    prices = df.select(price_expr())["priceRange"].to_list()

    assert prices == [parse_price_range(label) for label in PRICE_RANGES]


def test_is_remote() -> None:
    assert is_remote("https://example.com/data.csv")
    assert not is_remote("data/austin.csv")
    assert not is_remote(Path("http.csv"))


def test_load_csv_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_csv(tmp_path / "missing.csv")


def test_load_austin_housing_from_file(housing_csv: Path) -> None:
    df = load_austin_housing(housing_csv)

    assert df.height == 200
    assert df.schema["hasSpa"] == pl.Int8
    assert df.schema["uid"] == pl.String
    assert set(df["priceRange"].unique().to_list()) == set(PRICE_RANGES)


def test_load_austin_housing_requires_a_source(tmp_path: Path) -> None:
    settings = DataSourceSettings(cache_dir=tmp_path)

    with pytest.raises(ValueError, match="WALKTHROUGHS_AUSTIN_HOUSING_URL"):
        load_austin_housing(None, settings)


def test_prepare_austin_housing_parses_text_flags(housing_df: pl.DataFrame) -> None:
    raw = housing_df.with_columns(
        pl.when(pl.col("hasSpa")).then(pl.lit("True")).otherwise(pl.lit("False")).alias("hasSpa"),
        pl.when(pl.col("uid") == "3").then(None).otherwise(pl.col("priceRange")).alias("priceRange"),
        pl.when(pl.col("uid") == "4").then(None).otherwise(pl.col("description")).alias("description"),
    )

    prepared = prepare_austin_housing(raw)

    assert prepared.height == housing_df.height - 1
    assert prepared["hasSpa"].to_list() == housing_df.filter(pl.col("uid") != "3")["hasSpa"].cast(pl.Int8).to_list()
    assert prepared.filter(pl.col("uid") == "4")["description"][0] == ""


def test_prepare_austin_housing_missing_columns(housing_df: pl.DataFrame) -> None:
    with pytest.raises(ValueError, match="latitude"):
        prepare_austin_housing(housing_df.drop("latitude"))


def test_prepare_netflix_titles_drops_incomplete_rows(netflix_df: pl.DataFrame) -> None:
    raw = netflix_df.with_columns(
        pl.when(pl.col("show_id") == "s0").then(None).otherwise(pl.col("description")).alias("description")
    )

    prepared = prepare_netflix_titles(raw)

    assert prepared.height == netflix_df.height - 1
    with pytest.raises(ValueError, match="description"):
        prepare_netflix_titles(netflix_df.drop("description"))


def test_fetch_to_cache_downloads_once(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    url = "https://example.com/data/netflix_titles.csv"
    calls = []

    def fake_get(requested, **kwargs):
        calls.append(requested)
        return httpx.Response(
            200,
            content=b"show_id,type,description\ns1,Movie,A film.\n",
            request=httpx.Request("GET", requested),
        )

    monkeypatch.setattr(httpx, "get", fake_get)
    settings = DataSourceSettings(cache_dir=tmp_path / "cache")

    first = fetch_to_cache(url, settings)
    second = fetch_to_cache(url, settings)

    assert first == second
    assert first.name.endswith("_netflix_titles.csv")
    assert calls == [url]

    titles = load_netflix_titles(url, settings)
    assert titles["type"].to_list() == ["Movie"]
    assert len(calls) == 1


def test_fetch_to_cache_raises_on_http_errors(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    url = "https://example.com/missing.csv"
    monkeypatch.setattr(
        httpx, "get", lambda requested, **kwargs: httpx.Response(404, request=httpx.Request("GET", requested))
    )

    with pytest.raises(httpx.HTTPStatusError):
        fetch_to_cache(url, DataSourceSettings(cache_dir=tmp_path))
    assert not any(tmp_path.iterdir())


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WALKTHROUGHS_AUSTIN_HOUSING_URL", "https://example.com/austin.csv")
    monkeypatch.setenv("WALKTHROUGHS_DOWNLOAD_TIMEOUT", "5")

    settings = DataSourceSettings()

    assert settings.austin_housing_url == "https://example.com/austin.csv"
    assert settings.download_timeout == 5.0


def test_resolve_source_prefers_explicit_then_existing_file(tmp_path: Path) -> None:
    configured = tmp_path / "austin_housing.csv"

    assert resolve_source("https://example.com/a.csv", configured) == "https://example.com/a.csv"
    assert resolve_source(None, configured) is None
    configured.write_text("uid\n1\n")
    assert resolve_source(None, configured) == configured
