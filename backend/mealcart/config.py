from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "mealcart"
    env: str = "local"
    log_level: str = "INFO"

    database_url: str = "sqlite:///./mealcart.db"
    sql_echo: bool = False

    # Category assigned to recipe-derived items; ingredient lines carry no category of their own.
    aggregated_category: str = "Other"

    # Lists created the first time a week is opened: (name, list_type)
    default_lists: list[tuple[str, str]] = [("Weekly", "weekly"), ("Midweek", "midweek")]

    class Config:
        env_file = ".env"


settings = Settings()
