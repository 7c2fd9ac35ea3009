"""
MediaVault Configuration

We read configuration from 2 sources, in order of precedence (higher is more priority)
- Environment variables
- A .env file, either in the current working directory or in a location specified
  by the MEDIAVAULT_ENV_FILE environment variable
"""

import functools
from pathlib import Path
from typing import Annotated, Any

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "mediavault_"


class Settings(BaseSettings):
    env_file: Annotated[
        Path,
        Field(
            description="Location of a .env file (if used) relative to working directory",
        ),
    ] = Path(".env")

    s3_host: Annotated[str | None, Field(description="S3-compatible object storage host")] = None
    s3_access_key: Annotated[str | None, Field(description="S3 access key")] = None
    s3_secret_key: Annotated[str | None, Field(description="S3 secret key")] = None
    s3_region: Annotated[str | None, Field(description="S3 region (leave empty for most self-hosted stores)")] = None

    bucket: Annotated[str, Field(description="Bucket holding the media and thumbnail objects")] = "mediavault"
    use_test_bucket: Annotated[
        bool,
        Field(description="Use a separate test- bucket (used by the unit tests)"),
    ] = False

    media_prefix: Annotated[
        str,
        Field(description="Root prefix under which every scope keeps its media, e.g. media/<scope>/..."),
    ] = "media"
    thumbnail_prefix: Annotated[
        str,
        Field(description="Root prefix under which the thumbnail process writes thumbnails"),
    ] = "thumbnails"
    thumbnail_suffix: Annotated[str, Field(description="Suffix appended to the original key of a thumbnail")] = ".thumb.jpg"

    max_folder_rename_items: Annotated[
        int,
        Field(description="Maximum number of objects in a folder that can be renamed in one operation", gt=0),
    ] = 1000
    max_name_length: Annotated[int, Field(description="Maximum length of a file or folder name", gt=0)] = 100
    delete_concurrency: Annotated[
        int,
        Field(description="Maximum number of delete requests sent to the store at the same time", gt=0),
    ] = 16
    presigned_get_hours_valid: Annotated[int, Field(description="Validity of preview (GET) urls in hours", gt=0)] = 24

    log_level: Annotated[str, Field(description="Log level for the command line and server")] = "INFO"

    @model_validator(mode="after")
    def check_prefixes(self: Any) -> "Settings":
        for name in ("media_prefix", "thumbnail_prefix"):
            value = getattr(self, name)
            if not value or "/" in value:
                raise ValueError(f"{name} should be a single non-empty path segment, got {value!r}")
        if self.media_prefix == self.thumbnail_prefix:
            raise ValueError("media_prefix and thumbnail_prefix cannot be the same")
        return self

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX)


@functools.lru_cache()
def get_settings() -> Settings:
    temp = Settings()
    load_dotenv(temp.env_file, override=False)
    return Settings()


if __name__ == "__main__":
    # Echo the settings
    for k, v in get_settings().model_dump().items():
        print(f"{ENV_PREFIX.upper()}{k.upper()}={v}")
