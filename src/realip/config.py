from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from realip.networks import TrustedProxySet
from realip.resolver import RealIpResolver


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="REALIP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Comma-separated IP and CIDR literals, e.g. "10.0.0.0/8,127.0.0.1"
    trusted_proxies: str = ""
    reject_unresolved: bool = False
    log_level: str = "INFO"

    @field_validator("trusted_proxies")
    @classmethod
    def validate_trusted_proxies(cls, v: str) -> str:
        """Fail at startup rather than on the first request."""
        TrustedProxySet.parse(s for s in v.split(",") if s.strip())
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"Unsupported log_level: {v}")
        return v_upper

    @property
    def trusted_proxies_list(self) -> list[str]:
        return [s.strip() for s in self.trusted_proxies.split(",") if s.strip()]

    def build_resolver(self) -> RealIpResolver:
        return RealIpResolver(self.trusted_proxies_list)


@lru_cache
def get_settings() -> Settings:
    return Settings()


@lru_cache
def get_resolver() -> RealIpResolver:
    return get_settings().build_resolver()
