from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    tracking_code_max_attempts: int = 10  # draws before giving up on finding an unused code
    log_level: str = "INFO"

    # POST /admin/reset wipes every shipment; keep off outside tests and local runs
    admin_reset_enabled: bool = False

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
