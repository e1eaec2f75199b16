from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Server
    port: int = 8080
    log_level: str = "INFO"

    # Browser (milliseconds)
    browser_max_concurrent: int = 3
    page_navigation_timeout: int = 60000
    page_load_timeout: int = 30000
    page_network_idle_timeout: int = 15000
    page_post_load_delay: int = 0

    # Image element collection
    image_elements_timeout: int = 120000
    image_sizing_budget: int = 5000  # cumulative ms spent fetching source rules per run
    image_elements_max: int = 500

    # Rate limiting
    rate_limit: str = "100/15minutes"

    # CORS
    allowed_origins: list[str] = [
        "http://localhost:3000",
    ]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
