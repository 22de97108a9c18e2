from pathlib import Path
from typing import Literal, Optional
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StitchingConfig(BaseModel):
    """Configuration for splitpoint selection."""

    max_height: int = Field(default=5000, gt=0, description="Maximum height of a stitched image")
    min_height: int = Field(default=1, gt=0, description="Minimum height of every stitched image but the last")
    scan_interval: int = Field(default=5, gt=0, description="Only every n-th row of pixels is scanned")
    sensitivity: int = Field(
        default=220, ge=0, le=255, description="Minimum row uniformity (0-255) for a row to be cut at"
    )

    @model_validator(mode="after")
    def check_heights(self) -> "StitchingConfig":
        if self.min_height > self.max_height:
            raise ValueError(
                f"min_height ({self.min_height}) cannot exceed max_height ({self.max_height})"
            )
        return self


class InputConfig(BaseModel):
    """Configuration for loading the source images."""

    sort: Literal["natural", "logical"] = Field(default="natural", description="Directory listing order")
    target_width: Optional[int] = Field(default=None, gt=0, description="Rescale images to this width")
    ignore_unloadable: bool = Field(default=True, description="Skip images that fail to load")


class ExportConfig(BaseModel):
    """Configuration for writing the stitched images."""

    format: Literal["png", "webp", "jpg", "jpeg"] = Field(default="jpg", description="Output file type")
    quality: int = Field(default=100, ge=1, le=100, description="JPEG quality, ignored for png and webp")
    debug: bool = Field(default=False, description="Draw splitpoint markers on the output")
    output_dir: Path = Field(default=Path("./stitched"), description="Directory for the stitched images")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    debug: bool = False
    workers: Optional[int] = Field(default=None, gt=0)

    stitching: StitchingConfig = StitchingConfig()
    input: InputConfig = InputConfig()
    export: ExportConfig = ExportConfig()

    model_config = SettingsConfigDict(
        env_prefix="QUICKSTITCH_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
    )


settings = Settings()
