from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    app_name: str = Field("invoice-review-api", alias="APP_NAME")
    app_env: str = Field("dev", alias="APP_ENV")

    # Server
    host: str = Field("127.0.0.1", alias="HOST")
    port: int = Field(5000, alias="PORT")

    # Storage: sqlite:///path/to/file.db or memory://
    database_url: str = Field("sqlite:///invoices.db", alias="DATABASE_URL")

    # Gemini (optional - extraction reports "unconfigured" without a key)
    gemini_api_key: str | None = Field(default=None, alias="GEMINI_API_KEY")
    gemini_model: str = Field("gemini-1.5-flash", alias="GEMINI_MODEL")
    gemini_base_url: str = Field("https://generativelanguage.googleapis.com/v1beta", alias="GEMINI_BASE_URL")

    # Groq (reserved, not implemented yet)
    groq_api_key: str | None = Field(default=None, alias="GROQ_API_KEY")

    llm_timeout_seconds: float = Field(60.0, alias="LLM_TIMEOUT_SECONDS")
    llm_max_input_chars: int = Field(30000, alias="LLM_MAX_INPUT_CHARS")

    # Uploads
    max_upload_mb: int = Field(25, alias="MAX_UPLOAD_MB")

    # CORS allowed origins (comma-separated list for production deployment)
    cors_origins: str = Field("http://localhost:3000,http://127.0.0.1:3000", alias="CORS_ORIGINS")

    # Observability
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

settings = Settings()
