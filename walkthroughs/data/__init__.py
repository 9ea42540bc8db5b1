"""Dataset loading and data-source settings."""

from .loading import (
    HOUSING_NOMINAL_COLUMNS,
    HOUSING_NUMERIC_COLUMNS,
    HOUSING_REQUIRED_COLUMNS,
    NETFLIX_REQUIRED_COLUMNS,
    fetch_to_cache,
    load_austin_housing,
    load_csv,
    load_netflix_titles,
    parse_price_range,
    prepare_austin_housing,
    prepare_netflix_titles,
    price_expr,
    resolve_source,
    validate_columns,
)
from .settings import DataSourceSettings, get_settings

__all__ = [
    "HOUSING_NOMINAL_COLUMNS",
    "HOUSING_NUMERIC_COLUMNS",
    "HOUSING_REQUIRED_COLUMNS",
    "NETFLIX_REQUIRED_COLUMNS",
    "fetch_to_cache",
    "load_austin_housing",
    "load_csv",
    "load_netflix_titles",
    "parse_price_range",
    "prepare_austin_housing",
    "prepare_netflix_titles",
    "price_expr",
    "resolve_source",
    "validate_columns",
    "DataSourceSettings",
    "get_settings",
]
