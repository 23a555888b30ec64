"""Configuration settings for the company intelligence enrichment pipeline."""

from pathlib import Path
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Paths
    base_dir: Path = Path(__file__).parent.parent
    data_dir: Path = base_dir / "data"
    db_path: Path = data_dir / "company_intel.db"
    config_dir: Path = base_dir / "config"
    domain_overrides_file: str = "domain_ticker_overrides.json"
    name_overrides_file: str = "name_ticker_overrides.json"

    # API Keys
    crustdata_api_key: str = ""
    exa_api_key: str = ""
    anthropic_api_key: str = ""
    firecrawl_api_key: str = ""

    # Service endpoints
    crustdata_base_url: str = "https://api.crustdata.com"
    exa_base_url: str = "https://api.exa.ai"
    firecrawl_base_url: str = "https://api.firecrawl.dev/v1"
    sec_base_url: str = "https://www.sec.gov"
    sec_data_url: str = "https://data.sec.gov"

    # HTTP Client Settings
    sec_user_agent: str = "company-intel (contact: unknown@example.com)"
    connect_timeout: float = 10.0
    read_timeout: float = 30.0
    sec_request_delay: float = 0.1  # seconds between SEC requests / filing downloads
    search_query_delay: float = 1.0  # seconds between queries in multi-query searches
    scrape_max_retries: int = 3
    scrape_retry_delay: float = 1.0

    # Cache Settings
    use_http_cache: bool = True
    cache_duration_days: int = 30
    directory_cache_hours: int = 24

    # LLM Settings
    llm_model: str = "claude-sonnet-4-20250514"
    llm_max_tokens: int = 4000
    llm_temperature: float = 0.1
    signal_content_limit: int = 50_000

    # Matching policy
    ticker_confidence_threshold: float = 0.7
    directory_match_threshold: float = 0.8
    strategy_timeout: float = 30.0

    # Orchestration
    max_concurrency: int = 3
    task_timeout: float = 30.0
    batch_delay: float = 2.0
    max_filings: int = 10
    max_filing_documents: int = 3

    # Database URL
    @property
    def database_url(self) -> str:
        return f"sqlite:///{self.db_path}"

    @property
    def domain_overrides_path(self) -> Path:
        return self.config_dir / self.domain_overrides_file

    @property
    def name_overrides_path(self) -> Path:
        return self.config_dir / self.name_overrides_file

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()

# Ensure data directory exists
settings.data_dir.mkdir(parents=True, exist_ok=True)
