from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Hugging Face Inference API
    HF_API_TOKEN: str | None = None
    HF_API_URL: str = "https://api-inference.huggingface.co/models"
    CLASSIFIER_MODEL: str = "facebook/bart-large-mnli"
    SUMMARIZER_MODEL: str = "facebook/bart-large-cnn"
    SUMMARY_MAX_LENGTH: int = 100
    # Minimum top score for trusting the remote classifier over keyword fallback
    CONFIDENCE_THRESHOLD: float = Field(default=0.35, ge=0.0, le=1.0)
    # Per-call bound on remote inference; expiry counts as a transport failure
    INFERENCE_TIMEOUT_SECONDS: float = 30.0

    # Mail transport (SMTP over SSL)
    GMAIL_USER: str | None = None
    GMAIL_PASSWORD: str | None = None
    EMAIL_RECIPIENT: str | None = None
    EMAIL_SUBJECT: str = "TaskBuster Summary"
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 465
    SMTP_TIMEOUT_SECONDS: float = 30.0

    # HTTP surface
    CLIENT_URL: str = "http://localhost:3000"
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    RATE_LIMIT_REQUESTS: int = 100
    RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    # Key clients on X-Forwarded-For; enable only behind a trusted proxy
    TRUST_PROXY: bool = False

    # Request limits
    MAX_TASK_CHARS: int = 500
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024
    UPLOAD_DIR: str | None = None  # None -> system temp dir

    log_dir: str = "logs"
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def email_recipient(self) -> str | None:
        return self.EMAIL_RECIPIENT or self.GMAIL_USER

    def missing_credentials(self) -> list[str]:
        required = {
            "HF_API_TOKEN": self.HF_API_TOKEN,
            "GMAIL_USER": self.GMAIL_USER,
            "GMAIL_PASSWORD": self.GMAIL_PASSWORD,
        }
        return [name for name, value in required.items() if not value]

    def require_credentials(self) -> None:
        """Fail fast when the service cannot reach its external collaborators."""
        missing = self.missing_credentials()
        if missing:
            raise RuntimeError(
                f"Missing required environment variables: {', '.join(missing)}"
            )


settings = Settings()
