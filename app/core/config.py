import os
from dataclasses import dataclass

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


def _split_csv(val: str | None) -> list[str]:
    return [v.strip() for v in (val or "").split(",") if v.strip()]


@dataclass(frozen=True)
class VerifierConfig:
    base_url: str
    timeout_seconds: float = 30.0


@dataclass(frozen=True)
class SignatureConfig:
    title: str = "LupoVerify Quest Submission"
    validity_seconds: int = 300


class Settings(BaseSettings):
    # App
    APP_NAME: str = "LupoVerify Backend"
    LOG_LEVEL: str = "INFO"

    # DB
    DATABASE_URL: str = "sqlite:///./data/quests.db"

    # External proof verifier
    VERIFIER_URL: str = "http://localhost:8080"
    VERIFIER_TIMEOUT_SECONDS: float = 30.0

    # Wallet signatures
    SIGNATURE_MESSAGE_TITLE: str = "LupoVerify Quest Submission"
    SIGNATURE_VALIDITY_SECONDS: int = 300

    # Manual linking; empty disables the header check (local dev)
    OPERATOR_API_KEY: str = ""

    # CORS
    ALLOW_ORIGINS: list[str] = Field(default_factory=list)  # override via ALLOWED_ORIGINS (CSV)
    ALLOW_METHODS: list[str] = ["GET", "POST", "OPTIONS"]
    ALLOW_HEADERS: list[str] = ["*"]
    ALLOW_CREDENTIALS: bool = True

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # ---------- Helpers ----------

    def verifier_config(self) -> VerifierConfig:
        return VerifierConfig(
            base_url=self.VERIFIER_URL.rstrip("/"),
            timeout_seconds=self.VERIFIER_TIMEOUT_SECONDS,
        )

    def signature_config(self) -> SignatureConfig:
        return SignatureConfig(
            title=self.SIGNATURE_MESSAGE_TITLE,
            validity_seconds=self.SIGNATURE_VALIDITY_SECONDS,
        )

    def frontend_origins(self) -> list[str]:
        if self.ALLOW_ORIGINS:
            return self.ALLOW_ORIGINS
        return ["http://localhost:5173", "http://127.0.0.1:5173"]


def build_settings() -> Settings:
    s = Settings()

    # SQLAlchemy dropped the bare "postgres" scheme
    if s.DATABASE_URL.startswith("postgres://"):
        s.DATABASE_URL = s.DATABASE_URL.replace("postgres://", "postgresql://", 1)

    # Load CORS overrides
    env_origins = _split_csv(os.getenv("ALLOWED_ORIGINS"))
    if env_origins:
        s.ALLOW_ORIGINS = env_origins
    else:
        s.ALLOW_ORIGINS = s.frontend_origins()

    return s


settings = build_settings()
