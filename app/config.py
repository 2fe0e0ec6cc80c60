from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Student API"
    debug: bool = False

    # Backing JSON file holding the student collection
    students_file: str = "students.json"

    # Server settings
    host: str = "127.0.0.1"
    port: int = 5000

    # Logging settings
    log_level: str = "INFO"
    log_dir: str = "logs"
    request_log_enabled: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
