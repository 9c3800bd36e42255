from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Supabase (required at invocation time)
    supabase_url: str = ""
    supabase_service_role_key: str = ""

    # OpenRouter / OpenAI-compatible completion endpoint
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    default_model: str = "openai/gpt-4.1"
    extraction_model: str = ""  # optional override for schema extraction only
    extraction_max_tokens: int = 3000

    # Research capability
    research_provider: str = "perplexity"  # perplexity | tavily | firecrawl
    research_fallback_provider: str = ""  # empty disables fallback
    research_max_results: int = 10
    research_timeout_seconds: float = 120.0

    # Perplexity
    perplexity_api_key: str = ""
    perplexity_base_url: str = "https://api.perplexity.ai"
    perplexity_model: str = "sonar-deep-research"
    perplexity_max_tokens: int = 2000

    # Tavily
    tavily_api_key: str = ""

    # Firecrawl
    firecrawl_api_key: str = ""
    firecrawl_base_url: str = "https://api.firecrawl.dev"

    # Research orchestration
    default_phase: str = "Pre-Construction Planning & Design"
    sweep_delay_seconds: float = 2.0

    # App
    cors_origins: str = "http://localhost:5173"
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"
    log_dir: str = "logs"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def active_extraction_model(self) -> str:
        return self.extraction_model.strip() or self.default_model

    def missing_research_credentials(self) -> list[str]:
        """Names of the credentials the configured pipeline needs but lacks."""
        required = {
            "SUPABASE_URL": self.supabase_url,
            "SUPABASE_SERVICE_ROLE_KEY": self.supabase_service_role_key,
        }
        provider_keys = {
            "perplexity": ("PERPLEXITY_API_KEY", self.perplexity_api_key),
            "tavily": ("TAVILY_API_KEY", self.tavily_api_key),
            "firecrawl": ("FIRECRAWL_API_KEY", self.firecrawl_api_key),
        }
        for provider in (self.research_provider, self.research_fallback_provider):
            provider = provider.lower().strip()
            if provider in provider_keys:
                name, value = provider_keys[provider]
                required[name] = value
        return [name for name, value in required.items() if not value]


settings = Settings()
