from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DataSourceSettings(BaseSettings):
    austin_housing_url: str | None = Field(
        default=None,
        description="Remote CSV for the Austin housing listings (no public mirror by default)",
    )
    netflix_titles_url: str = Field(
        default="https://raw.githubusercontent.com/rfordatascience/tidytuesday/master/data/2021/2021-04-20/netflix_titles.csv",
        description="Remote CSV for the Netflix titles catalog",
    )
    cache_dir: Path = Field(default=Path(".cache/walkthroughs"), description="Download cache")
    download_timeout: float = Field(default=60.0, gt=0, description="HTTP timeout in seconds")

    model_config = SettingsConfigDict(
        env_prefix="WALKTHROUGHS_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


def get_settings() -> DataSourceSettings:
    return DataSourceSettings()
