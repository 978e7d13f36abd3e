from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from briefguard.grounding.policy import GroundingPolicy


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    app_name: str = "Briefguard API"
    app_env: str = "development"
    cors_origins: str = "http://localhost:3000"
    cors_allow_credentials: bool = True
    log_level: str = "INFO"
    request_id_header: str = "X-Request-ID"

    contract_default_required_count: int = Field(default=3, ge=1)
    contract_guard_limit: int = Field(default=64, ge=1)
    contract_max_citations: int = Field(default=4, ge=1)

    # Empirical values; recalibrate against a labelled claim set before changing defaults.
    evidence_similarity_threshold: float = Field(default=0.14, ge=0.0, le=1.0)
    evidence_auto_match_threshold: float = Field(default=0.20, ge=0.0, le=1.0)
    evidence_excerpt_max_chars: int = Field(default=520, ge=16, le=520)
    evidence_strict_sections: str = "procurement_action,watchlist"
    evidence_auto_analysis_sections: str = "summary,highlight,delta"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def cors_origins_list(self) -> list[str]:
        return _split_csv(self.cors_origins)

    def grounding_policy(self) -> GroundingPolicy:
        return GroundingPolicy(
            similarity_threshold=self.evidence_similarity_threshold,
            auto_match_threshold=self.evidence_auto_match_threshold,
            excerpt_max_chars=self.evidence_excerpt_max_chars,
            strict_sections=frozenset(_split_csv(self.evidence_strict_sections)),
            auto_analysis_sections=frozenset(_split_csv(self.evidence_auto_analysis_sections)),
        )


settings = Settings()
