# softphone/config.py
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_TRANSCRIPTION_PROMPT = (
    "Dette er et dansk salgsopkald. Almindelige danske fraser inkluderer: "
    '"Nummeret du ringer til kan ikke modtage opkald lige nu", '
    '"Indtal en besked efter tonen", '
    '"Personen du ringer til er ikke tilgængelig", '
    '"Hej, du har ringet til", '
    '"Læg venligst en besked efter bippet", '
    '"Telefonsvareren". Navne og firmanavne kan forekomme.'
)


class Settings(BaseSettings):
    ENV: str = "dev"
    APP_NAME: str = "Softphone Call Service"
    LOG_LEVEL: str = "INFO"

    # DB URL – SQLite locally, Postgres in production
    DATABASE_URL: str = "sqlite:///./softphone.db"

    # Public base URL of this service, used to build Twilio callback URLs
    APP_BASE_URL: Optional[str] = None

    # Session tokens issued by the CRM (bearer JWT, sub = user id)
    SESSION_SECRET: str = "change-me"
    SESSION_ALGORITHM: str = "HS256"

    # Twilio config
    TWILIO_ACCOUNT_SID: Optional[str] = None
    TWILIO_AUTH_TOKEN: Optional[str] = None
    TWILIO_API_KEY: Optional[str] = None
    TWILIO_API_SECRET: Optional[str] = None
    TWILIO_TWIML_APP_SID: Optional[str] = None
    TWILIO_PHONE_NUMBER: Optional[str] = None  # our Twilio caller ID

    ACCESS_TOKEN_TTL_SECONDS: int = 3600
    DIAL_TIMEOUT_SECONDS: int = 30

    VOICE_LANGUAGE: str = "da-DK"
    VOICE_GREETING: str = "Velkommen til Øresund Partners."
    VOICE_ERROR_MESSAGE: str = "Der opstod en fejl med opkaldet."
    VOICE_LIVENESS_MESSAGE: str = "Voice webhook aktiv."

    # Speech-to-text for recorded calls
    OPENAI_API_KEY: Optional[str] = None
    TRANSCRIPTION_MODEL: str = "whisper-1"
    TRANSCRIPTION_LANGUAGE: str = "da"
    TRANSCRIPTION_PROMPT: str = DEFAULT_TRANSCRIPTION_PROMPT
    RECORDING_FETCH_TIMEOUT_SECONDS: int = 30

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def missing_token_credentials(self) -> List[str]:
        """Names of the settings the Token Issuer needs but does not have."""
        required = {
            "TWILIO_ACCOUNT_SID": self.TWILIO_ACCOUNT_SID,
            "TWILIO_API_KEY": self.TWILIO_API_KEY,
            "TWILIO_API_SECRET": self.TWILIO_API_SECRET,
            "TWILIO_TWIML_APP_SID": self.TWILIO_TWIML_APP_SID,
        }
        return [name for name, value in required.items() if not value]

    def missing_rest_credentials(self) -> List[str]:
        required = {
            "TWILIO_ACCOUNT_SID": self.TWILIO_ACCOUNT_SID,
            "TWILIO_AUTH_TOKEN": self.TWILIO_AUTH_TOKEN,
        }
        return [name for name, value in required.items() if not value]

    def missing_voice_settings(self) -> List[str]:
        required = {
            "TWILIO_PHONE_NUMBER": self.TWILIO_PHONE_NUMBER,
            "APP_BASE_URL": self.APP_BASE_URL,
        }
        return [name for name, value in required.items() if not value]

    def missing_transcription_credentials(self) -> List[str]:
        missing = self.missing_rest_credentials()
        if not self.OPENAI_API_KEY:
            missing.append("OPENAI_API_KEY")
        return missing

    def callback_url(self, path: str) -> str:
        base = (self.APP_BASE_URL or "").rstrip("/")
        return f"{base}{path}"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
