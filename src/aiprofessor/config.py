from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str  # MongoDB URL including database name, e.g. mongodb://localhost/aiprofessor
    redis_url: str = "redis://localhost:6379/0"
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8080
    debug: bool = False
    profile: str = "dev"  # "prod" restricts the API to the desktop client
    electron_token: str = ""  # Shared secret sent by the desktop client as X-App-Token
    cors_origins: list[str] = []
    base_url: str = "http://localhost:8080"  # Public URL used to build artifact download links
    files_path: str = "datas"  # Directory for stored input/output PDFs

    jwt_secret: str
    jwt_expiration_seconds: int = 24 * 60 * 60
    session_ttl_seconds: int = 24 * 60 * 60  # Fixed lifetime from creation, never renewed
    max_concurrent_sessions: int = 1

    pdf_max_size_bytes: int = 30 * 1024 * 1024
    pdf_font_path: str | None = None  # TTF with Unicode coverage; without it output is Latin-1 only

    llm_model: str = "anthropic/claude-sonnet-4-5"
    llm_api_key: str = ""
    llm_api_base: str | None = None
    llm_max_tokens: int = 64000
    llm_connect_timeout: float = 120.0
    llm_read_timeout: float = 600.0
    llm_write_timeout: float = 120.0
    llm_send_pdf: bool = False  # Send raw PDF to the provider instead of extracted text

    history_cache_ttl_seconds: int = 24 * 60 * 60
    history_cache_max_items: int = 20

    seed_user_enabled: bool = False  # Create testuser/test1234 on startup (development only)

    model_config = {
        "env_file": [".env"],
        "env_prefix": "AIPROFESSOR_",
        "extra": "ignore",
    }
