from typing import Dict, List, Optional
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path
from functools import lru_cache


BASE_DIR = Path(__file__).resolve().parent.parent


class DBParams(BaseModel):
    host: str
    port: int
    user: str
    password: str
    database: str


class Settings(BaseSettings):
    # 基本环境
    APP_ENV: str = "test"   # e.g. "prod" or "test" or "dev"
    APP_NAME: str = "defect_correlation"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = "defect_correlation_server.log"

    # Data source: "csv" reads DATA_DIR/<file>, "db" reads <table> through SQLAlchemy
    DATA_SOURCE: str = "csv"
    DATA_DIR: Path = BASE_DIR / "data"
    DEFECT_RATE_FILE: str = "defect_rate.csv"
    PARAMS_FILE: str = "params.csv"
    DEFECT_RATE_TABLE: str = "defect_rate"
    PARAMS_TABLE: str = "params"

    # 完整连接串优先，未配置时按 APP_ENV 从 DB_CONFIG 拼接 mysql 连接
    DATABASE_URL: Optional[str] = None
    DB_CONFIG: Dict[str, DBParams] = Field(
        {
            "prod": {
                "host": "127.0.0.1",
                "port": 3306,
                "user": "defect",
                "password": "defect",
                "database": "defect_analysis",
            },
            "test": {
                "host": "127.0.0.1",
                "port": 3306,
                "user": "defect",
                "password": "defect",
                "database": "defect_analysis_test",
            },
        }
    )

    CORS_ORIGINS: List[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def get_db_params(self, env: Optional[str] = None) -> Dict:
        env = env or self.APP_ENV
        try:
            return self.DB_CONFIG[env].model_dump()
        except KeyError as e:
            raise KeyError(f"DB config not found for env={env}: {e}")


@lru_cache()
def get_settings() -> Settings:
    return Settings()
