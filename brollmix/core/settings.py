from pydantic_settings import BaseSettings
from pydantic import Field

class Settings(BaseSettings):
    app_env: str = Field(default="dev", alias="APP_ENV")
    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=8000, alias="APP_PORT")
    cors_origins: str = Field(default="http://localhost:3000", alias="CORS_ORIGINS")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")

    # Working directories
    temp_dir: str = Field(default="data/temp", alias="TEMP_DIR")
    download_dir: str = Field(default="data/downloads", alias="DOWNLOAD_DIR")
    exports_dir: str = Field(default="data/exports", alias="EXPORTS_DIR")
    keep_temp_files: bool = Field(default=False, alias="KEEP_TEMP_FILES")
    temp_max_age_hours: int = Field(default=24, alias="TEMP_MAX_AGE_HOURS")

    # Acquisition
    fetch_batch_size: int = Field(default=3, ge=1, alias="FETCH_BATCH_SIZE")
    ytdlp_format: str = Field(
        default="bestvideo[ext=mp4]+bestaudio[ext=m4a]/best[ext=mp4]/best",
        alias="YTDLP_FORMAT",
    )

    # 0 means unbounded
    max_concurrent_jobs: int = Field(default=0, ge=0, alias="MAX_CONCURRENT_JOBS")

    class Config:
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True

settings = Settings()
