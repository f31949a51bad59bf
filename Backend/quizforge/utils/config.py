from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    google_api_key: str = ""
    llm_model: str = "gemini-2.0-flash"
    llm_temperature: float = 0.7
    llm_max_output_tokens: int = 2000
    llm_timeout_s: float = 60.0

    # 1 token ~ 4 characters; an approximation, not a tokenizer
    token_budget: int = 8000
    chars_per_token: int = 4

    default_question_count: int = 5
    max_question_count: int = 20
    default_flashcard_count: int = 10

    natural_slide_order: bool = False
    large_file_warning_mb: float = 5.0
    very_large_file_mb: float = 10.0
    auto_max_slides: int = 5

    ocr_language: str = "eng"
    log_level: str = "INFO"

    @property
    def max_chars(self) -> int:
        return self.token_budget * self.chars_per_token

    @property
    def api_key_status(self) -> str:
        if not self.google_api_key:
            return "Not configured"
        return f"Configured ({len(self.google_api_key)} characters)"

settings = Settings()
