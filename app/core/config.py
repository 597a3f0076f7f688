from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """환경변수 기반 애플리케이션 설정"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = "postgresql+asyncpg://localhost:5432/quiz_attempt_db"
    db_echo: bool = False

    # CORS
    allowed_origins: str = "http://localhost:5173"

    # Environment
    environment: str = "development"
    log_dir: str = "/app/logs"

    # 시험 응시 정책
    auto_submit_enabled: bool = True
    submit_grace_seconds: int = 5
    # 미응답 서술형 문항을 0점 채점 완료로 닫을지 여부 (기본: 수동 채점 대기)
    close_unanswered_essays: bool = False

    @property
    def allowed_origins_list(self) -> list[str]:
        """쉼표로 구분된 CORS 허용 origin 목록"""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


settings = Settings()
