from typing import Optional
from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    host: str = Field(default="localhost", alias="POSTGRES_HOST")
    port: int = Field(default=5432, alias="POSTGRES_DB_PORT")
    db_name: str = Field(default="noteforge", alias="POSTGRES_DB_NAME")
    user: str = Field(default="postgres", alias="POSTGRES_DB_USER")
    password: str = Field(default="postgres", alias="POSTGRES_DB_PASSWORD")

    # Full URL override, e.g. sqlite+aiosqlite:///./dev.db
    url: Optional[str] = Field(default=None, alias="DATABASE_URL")

    @computed_field
    def connection_string(self) -> str:
        if self.url:
            return self.url
        return (
            f"postgresql+asyncpg://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.db_name}"
        )


class JWTSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    audience: str = Field(default="noteforge:auth", alias="JWT_AUDIENCE")
    token_lifetime_seconds: int = Field(
        default=3600, alias="JWT_TOKEN_LIFETIME_SECONDS"
    )


class GeminiSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    # Optional here; generation raises ConfigurationError when it is missing.
    api_key: Optional[str] = Field(default=None, alias="GEMINI_API_KEY")
    model: str = Field(default="gemini-2.0-flash", alias="GEMINI_MODEL")
    base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        alias="GEMINI_BASE_URL",
    )
    timeout_seconds: float = Field(default=30.0, alias="GEMINI_TIMEOUT_SECONDS")

    temperature: float = Field(default=0.7, alias="GEMINI_TEMPERATURE")
    top_p: float = Field(default=0.95, alias="GEMINI_TOP_P")
    top_k: int = Field(default=40, alias="GEMINI_TOP_K")
    max_output_tokens: int = Field(default=2048, alias="GEMINI_MAX_OUTPUT_TOKENS")


class FlashcardLimits(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    max_generate_count: int = Field(default=30, alias="MAX_GENERATE_COUNT")
    max_reforge_count: int = Field(default=50, alias="MAX_REFORGE_COUNT")
    min_source_length: int = Field(default=10, alias="MIN_SOURCE_LENGTH")


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    name: str = Field(default="noteforge", alias="APP_NAME")
    version: str = Field(default="v1", alias="API_VERSION")
    port: int = Field(default=9000, alias="APP_PORT")
    mode: str = Field(default="prod", alias="MODE")
    jwt_secret: str = Field(alias="JWT_SECRET")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"], alias="CORS_ORIGINS"
    )

    @computed_field
    def is_production(self) -> bool:
        return self.mode not in ("dev", "test")

    @computed_field
    def is_testing(self) -> bool:
        return self.mode == "test"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    app: AppSettings = Field(default_factory=lambda: AppSettings())
    database: DatabaseSettings = Field(default_factory=lambda: DatabaseSettings())
    jwt: JWTSettings = Field(default_factory=lambda: JWTSettings())
    gemini: GeminiSettings = Field(default_factory=lambda: GeminiSettings())
    limits: FlashcardLimits = Field(default_factory=lambda: FlashcardLimits())


settings = Settings()
