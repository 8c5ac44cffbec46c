import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv(override=True)


def _env_bool(name: str, default: bool = False) -> bool:
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_list(name: str, default: str = "") -> tuple[str, ...]:
    raw_value = os.getenv(name, default)
    return tuple(item.strip() for item in raw_value.split(",") if item.strip())


_PUBLIC_DIR = os.getenv("PUBLIC_DIR", "public")


@dataclass(frozen=True)
class Settings:
    admin_email: str = os.getenv("ADMIN_EMAIL", "")
    jwt_secret: str = os.getenv("JWT_SECRET", "")
    jwt_algorithm: str = os.getenv("ALGORITHM", "HS256")
    session_token_expire_minutes: int = int(
        os.getenv("SESSION_TOKEN_EXPIRE_MINUTES", "30")
    )
    otp_length: int = int(os.getenv("OTP_LENGTH", "6"))
    otp_ttl_seconds: int = int(os.getenv("OTP_TTL_SECONDS", "60"))
    otp_debug: bool = _env_bool("OTP_DEBUG", False)
    otp_email_sender: str = (
        os.getenv("OTP_EMAIL_SENDER") or os.getenv("EMAIL_USER", "")
    )
    otp_email_subject: str = os.getenv("OTP_EMAIL_SUBJECT", "Your OTP")
    gmail_token_file: str = os.getenv("GMAIL_TOKEN_FILE", "")
    gmail_credentials_file: str = os.getenv(
        "GMAIL_CREDENTIALS_FILE", os.getenv("GOOGLE_SERVICE_ACCOUNT_FILE", "")
    )
    email_timeout_seconds: float = float(os.getenv("EMAIL_TIMEOUT_SECONDS", "10"))
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./packages.db")
    public_dir: str = _PUBLIC_DIR
    image_dir: str = os.getenv("IMAGE_DIR", os.path.join(_PUBLIC_DIR, "images"))
    image_url_prefix: str = os.getenv("IMAGE_URL_PREFIX", "/images")
    cors_origins: tuple[str, ...] = _env_list(
        "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
    )
    require_auth_for_writes: bool = _env_bool("REQUIRE_AUTH_FOR_WRITES", True)
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
