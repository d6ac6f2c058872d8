from typing import List
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Настройки базы данных
    DATABASE_USER: str
    DATABASE_PASSWORD: str
    DATABASE_HOST: str
    DATABASE_PORT: int
    DATABASE_NAME: str

    # Настройки JWT токенов (секрет тот же, что и у сервиса аутентификации)
    SECRET_KEY: str
    ALGORITHM: str = "HS256"

    REDIS_HOST: str
    REDIS_PORT: int
    # Канал, в который публикуются события "баланс изменился"
    BALANCE_EVENTS_CHANNEL: str = "points:balance-changed"

    # Программа лояльности
    POINTS_LIFETIME_DAYS: int = 90
    DEFAULT_MAX_PRODUCTS: int = 100
    DEFAULT_MAX_SHARE_LINKS: int = 1

    # Внешний планировщик передает этот секрет в заголовке X-Scheduler-Secret
    SCHEDULER_SECRET: str
    SCHEDULER_TIMEZONE: str = "Asia/Kolkata"
    EXPIRE_POINTS_CRON_HOUR: int = 2
    RUN_SCHEDULER: bool = True

    LOG_LEVEL: str = "INFO"
    JOBS_LOG_LEVEL: str = "INFO"

    RATE_LIMIT_ENABLED: bool = True
    AWARD_RATE_LIMIT: str = "60/minute"

    ADMIN_ACCOUNT_IDS_STR: str = Field(default="", alias="ADMIN_ACCOUNT_IDS")
    FRONTEND_URL: str = "http://localhost:5173"

    @property
    def ADMIN_ACCOUNT_IDS(self) -> List[str]:
        return [account_id.strip() for account_id in self.ADMIN_ACCOUNT_IDS_STR.split(',') if account_id.strip()]

    @property
    def REDIS_URL(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}"

    @property
    def DATABASE_URL(self) -> str:
        return f"postgresql+psycopg2://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}"

    model_config = SettingsConfigDict(env_file=".env", populate_by_name=True)

settings = Settings()
