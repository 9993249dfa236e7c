from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Redis
    redis_url: str = "redis://localhost:6379/0"

    # Crawling
    crawl_timeout_seconds: float = 15.0
    crawl_max_redirects: int = 5
    crawl_max_concurrency: int = 3
    crawl_max_pages: int = 100
    crawl_batch_delay_seconds: float = 0.05  # pause between batches
    crawl_idle_wait_seconds: float = 0.1  # wait when only in-flight work remains
    crawl_stream_buffer: int = 32
    user_agent: str = "Mozilla/5.0 (compatible; RagCrawlerBot/1.0; +https://github.com/ragcrawler)"

    # Extraction
    primary_extractor: str = "readability"  # readability | heuristic
    excerpt_length: int = 300

    # Rate limiting
    crawl_rate_limit: int = 20  # crawl requests per minute per client

    # App
    app_name: str = "RagCrawler API"
    app_version: str = "1.0.0"
    debug: bool = False


settings = Settings()
