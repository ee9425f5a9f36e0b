from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    stakekit_api_key: str = Field(default="", alias="STAKEKIT_API_KEY")
    stakekit_base_url: str = Field(default="https://api.stakek.it", alias="STAKEKIT_BASE_URL")
    network: str = Field(default="arbitrum", alias="NETWORK")

    openai_api_key: str = Field(default="", alias="OPENAI_API_KEY")
    openai_base_url: str = Field(default="https://api.openai.com/v1", alias="OPENAI_BASE_URL")
    openai_model: str = Field(default="gpt-4o-mini", alias="OPENAI_MODEL")
    openai_temperature: float = Field(default=0.2, alias="OPENAI_TEMPERATURE")

    mnemonic: str = Field(default="", alias="MNEMONIC")

    check_interval_seconds: float = Field(default=300.0, alias="CHECK_INTERVAL_SECONDS")
    http_timeout_seconds: float = Field(default=30.0, alias="HTTP_TIMEOUT_SECONDS")
    construct_attempts: int = Field(default=3, alias="CONSTRUCT_ATTEMPTS")
    construct_retry_delay_seconds: float = Field(default=1.0, alias="CONSTRUCT_RETRY_DELAY_SECONDS")
    status_poll_interval_seconds: float = Field(default=2.0, alias="STATUS_POLL_INTERVAL_SECONDS")
    position_batch_size: int = Field(default=15, gt=0, le=15, alias="POSITION_BATCH_SIZE")
