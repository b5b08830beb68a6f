"""
Configuration settings for trustmap.

Uses Pydantic Settings to load environment variables for the directory
connection, paging and logging. Credentials default to the ambient Kerberos
ticket cache of the current process.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from trustmap.exceptions import ConfigurationError

AuthMethod = Literal["kerberos", "ntlm", "simple", "anonymous"]
FailedDomainPolicy = Literal["keep", "skip"]


class Settings(BaseSettings):
    # Directory
    forest_server: Optional[str] = Field(
        None, validation_alias=AliasChoices("TRUSTMAP_SERVER", "USERDNSDOMAIN")
    )
    ldap_port: int = Field(389, alias="TRUSTMAP_LDAP_PORT")
    use_ssl: bool = Field(False, alias="TRUSTMAP_USE_SSL")
    connect_timeout: int = Field(10, alias="TRUSTMAP_CONNECT_TIMEOUT")
    receive_timeout: int = Field(30, alias="TRUSTMAP_RECEIVE_TIMEOUT")
    root_connect_attempts: int = Field(3, alias="TRUSTMAP_ROOT_CONNECT_ATTEMPTS", ge=1)

    # Credentials
    auth_method: AuthMethod = Field("kerberos", alias="TRUSTMAP_AUTH")
    username: Optional[str] = Field(None, alias="TRUSTMAP_USERNAME")
    password: Optional[str] = Field(None, alias="TRUSTMAP_PASSWORD")
    user_domain: Optional[str] = Field(None, alias="TRUSTMAP_USER_DOMAIN")

    # Enumeration
    page_size: int = Field(500, alias="TRUSTMAP_PAGE_SIZE", gt=0)
    prefer_dns_target: bool = Field(True, alias="TRUSTMAP_PREFER_DNS_TARGET")
    failed_domain_policy: FailedDomainPolicy = Field(
        "keep", alias="TRUSTMAP_FAILED_DOMAIN_POLICY"
    )

    # Application
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    json_logs: bool = Field(False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    def require_forest_server(self) -> str:
        """Return the forest root host or fail before any network I/O."""
        if not self.forest_server:
            raise ConfigurationError(
                "No forest root server configured; set TRUSTMAP_SERVER (or USERDNSDOMAIN)"
            )
        return self.forest_server

    def check_credentials(self) -> None:
        if self.auth_method in ("ntlm", "simple") and not (self.username and self.password):
            raise ConfigurationError(
                f"auth method '{self.auth_method}' needs TRUSTMAP_USERNAME and TRUSTMAP_PASSWORD"
            )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["AuthMethod", "FailedDomainPolicy", "Settings", "get_settings"]
