from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"

DEFAULTS = {
    "llm_provider": "ollama",
    "llm_model": "qwen3:8b",
    "ollama_url": "http://localhost:11434",
    "llm_temperature": 0.7,
    "refine_temperature": 0.3,
    "max_retries": 3,
    "batch_size": 5,
    "batch_concurrency": 2,
    "retry_delay": 1.0,
    "validator": "rules",
}

VALIDATORS = ("rules", "llm")


@dataclass
class Settings:
    llm_provider: str = DEFAULTS["llm_provider"]
    llm_model: str = DEFAULTS["llm_model"]
    ollama_url: str = DEFAULTS["ollama_url"]
    llm_temperature: float = DEFAULTS["llm_temperature"]
    refine_temperature: float = DEFAULTS["refine_temperature"]
    max_retries: int = DEFAULTS["max_retries"]
    batch_size: int = DEFAULTS["batch_size"]
    batch_concurrency: int = DEFAULTS["batch_concurrency"]
    retry_delay: float = DEFAULTS["retry_delay"]
    validator: str = DEFAULTS["validator"]

    def __post_init__(self):
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be >= 1 (got {self.max_retries})")
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be >= 1 (got {self.batch_size})")
        if self.batch_concurrency < 1:
            raise ValueError(f"batch_concurrency must be >= 1 (got {self.batch_concurrency})")
        if self.retry_delay < 0:
            raise ValueError(f"retry_delay must be >= 0 (got {self.retry_delay})")
        if self.validator not in VALIDATORS:
            raise ValueError(f"Unknown validator: {self.validator}")

    def to_dict(self) -> dict:
        return {
            "llm_provider": self.llm_provider,
            "llm_model": self.llm_model,
            "ollama_url": self.ollama_url,
            "llm_temperature": self.llm_temperature,
            "refine_temperature": self.refine_temperature,
            "max_retries": self.max_retries,
            "batch_size": self.batch_size,
            "batch_concurrency": self.batch_concurrency,
            "retry_delay": self.retry_delay,
            "validator": self.validator,
        }


def load_settings() -> Settings:
    if CONFIG_PATH.exists():
        raw = json.loads(CONFIG_PATH.read_text())
        known = {f.name for f in Settings.__dataclass_fields__.values()}
        filtered = {k: v for k, v in raw.items() if k in known}
        return Settings(**filtered)
    return Settings()


def save_settings(settings: Settings) -> None:
    CONFIG_PATH.write_text(json.dumps(settings.to_dict(), indent=4) + "\n")
