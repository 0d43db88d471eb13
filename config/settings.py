"""
config/settings.py
Central configuration — reads from environment variables and .env file.
"""
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings:

    def __init__(self):
        self._load()

    def _load(self):
        import os
        env_file = BASE_DIR / ".env"
        if env_file.exists():
            for line in env_file.read_text().splitlines():
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, _, val = line.partition("=")
                    os.environ.setdefault(key.strip(), val.strip())

        self.groq_api_key    = os.environ.get("GROQ_API_KEY", "")
        self.groq_model      = os.environ.get("GROQ_MODEL", "llama-3.3-70b-versatile")
        self.llm_temperature = float(os.environ.get("LLM_TEMPERATURE", "0"))
        self.llm_max_tokens  = int(os.environ.get("LLM_MAX_TOKENS", "4096"))

        self.api_host    = os.environ.get("API_HOST", "0.0.0.0")
        self.api_port    = int(os.environ.get("API_PORT", "8000"))
        self.api_title   = "SoF Event Extractor API"
        self.api_version = "1.0.0"

        self.metrics_port = int(os.environ.get("METRICS_PORT", "9090"))
        self.log_level    = os.environ.get("LOG_LEVEL", "INFO")

        # Laytime defaults (charter party terms when the SoF is silent)
        self.allowed_laytime_hours  = float(os.environ.get("ALLOWED_LAYTIME_HOURS", "72"))
        self.demurrage_rate_per_day = float(os.environ.get("DEMURRAGE_RATE_PER_DAY", "20000"))
        self.demurrage_currency     = os.environ.get("DEMURRAGE_CURRENCY", "$")
        self.laytime_counted_categories = [
            c.strip() for c in
            os.environ.get("LAYTIME_COUNTED_CATEGORIES", "CargoOperations").split(",")
            if c.strip()
        ]
        # "model": trust the LLM breakdown, fall back to rules if absent
        # "rules": always use the in-house calculator
        self.laytime_source = os.environ.get("LAYTIME_SOURCE", "model").lower()

        self.max_sof_chars = int(os.environ.get("MAX_SOF_CHARS", "200000"))


settings = Settings()
