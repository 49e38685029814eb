from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {
        "env_file": "../.env",
        "extra": "ignore",
        "env_prefix": "",
        "case_sensitive": False,
    }

    # AI providers (empty = backend skipped)
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-5-20250929"
    google_ai_api_key: str = ""
    google_cloud_project: str = ""
    google_cloud_location: str = "us-central1"
    gemini_model: str = "gemini-2.5-flash"
    openrouter_api_key: str = ""
    openrouter_models: list[str] = [
        "google/gemma-7b-it:free",
        "huggingfaceh4/zephyr-7b-beta:free",
        "meta-llama/llama-2-13b-chat:free",
        "gryphe/mythomax-l2-13b:free",
    ]
    huggingface_token: str = ""
    huggingface_model: str = "microsoft/DialoGPT-medium"
    provider_timeout_seconds: float = 30.0
    use_synthetic_responses: bool = False

    # Images
    pexels_api_key: str = ""

    # Cache
    promotions_cache_ttl_seconds: int = 24 * 60 * 60

    # App
    environment: str = "development"
    log_level: str = "INFO"
    log_file: str = ""


settings = Settings()
