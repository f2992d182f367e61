"""Storefront Configuration"""

import os
from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    # Application
    debug: bool = False

    # Cart service
    cart_service_url: str = "http://localhost:8001"
    request_timeout: float = 10.0
    merge_timeout: float = 15.0

    # Session identity
    session_store_path: Optional[str] = "~/.storefront/session.json"
    session_key: str = "cartSessionId"

    # Retire the guest token once its cart has been merged into an account
    retire_guest_token_after_merge: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "STOREFRONT_"
        case_sensitive = False

    def get_session_store_path(self) -> Optional[str]:
        """Session store path with ``~`` expanded"""
        if not self.session_store_path:
            return None
        return os.path.expanduser(self.session_store_path)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
