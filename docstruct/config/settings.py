from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    structure_min_confidence: float = 0.3
    structure_min_section_length: int = 50
    structure_max_title_length: int = 200
    structure_max_analysis_time: int = 120
    structure_high_confidence: float = 0.9
    structure_medium_confidence: float = 0.7
    structure_low_confidence: float = 0.5
    structure_min_viable_length: int = 100
    structure_max_batch_size: int = 100
    structure_patterns_path: str = ""

    regex_timeout_seconds: float = 1.0

    anchor_max_slug_length: int = 50

    extraction_pdf_engine: str = "pdfplumber"

    llm_provider: str = "example"
    llm_temperature: float = 0.0
    llm_target_language: str = "English"
    reconcile_strict: bool = False

    llm_openai_api_key: str = ""
    llm_openai_model_name: str = "gpt-4o-mini"
    llm_openai_timeout_seconds: int = 60

    llm_openai_compatible_api_key: str = ""
    llm_openai_compatible_model_name: str = ""
    llm_openai_compatible_base_url: str = ""
    llm_openai_compatible_timeout_seconds: int = 60

    llm_openrouter_api_key: str = ""
    llm_openrouter_model_name: str = ""
    llm_openrouter_timeout_seconds: int = 60

    llm_deepseek_api_key: str = ""
    llm_deepseek_model_name: str = "deepseek-chat"
    llm_deepseek_timeout_seconds: int = 60

    llm_ollama_api_key: str = "ollama"
    llm_ollama_model_name: str = ""
    llm_ollama_timeout_seconds: int = 120
