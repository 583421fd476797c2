"""Application configuration using Pydantic Settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # System Configuration
    app_name: str = "Skills Audit System"
    api_v1_prefix: str = "/api/v1"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:4173"
    rate_limit_enabled: bool = True
    rate_limit_storage_uri: str = "memory://"  # single instance

    # Supabase Configuration
    supabase_url: str = "https://test.supabase.co"
    supabase_anon_key: str = "test-anon-key"
    supabase_service_role_key: str = "test-service-role-key"

    # JWT Verification Configuration
    use_local_jwt_verification: bool = True
    jwks_cache_ttl_seconds: int = 3600  # 1 hour
    jwt_audience: str = "authenticated"
    jwt_leeway_seconds: int = 10  # Clock skew tolerance
    password_reset_redirect_url: str | None = None

    # Session / request identity
    auth_cookie_name: str = "auth_token"
    auth_cookie_max_age_seconds: int = 1800  # 30 minutes
    remember_me_max_age_seconds: int = 2592000  # 30 days
    auth_cookie_secure: bool = True
    login_path: str = "/login"
    ajax_header_name: str = "X-Requested-With"
    ajax_header_value: str = "XMLHttpRequest"

    # Document store
    default_page_size: int = 10
    max_page_size: int = 100
    batch_function_name: str = "apply_document_batch"

    # PostHog Configuration
    posthog_api_key: str | None = None
    posthog_host: str = "https://app.posthog.com"


settings = Settings()
