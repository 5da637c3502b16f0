from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8')

    app_name: str = 'File Browser'
    app_version: str = '1.0-SNAPSHOT'
    production_mode: bool = False
    supported_locales: str = 'en, MK_mk'
    app_host: str = '0.0.0.0'
    app_port: int = 8080
    app_server: str = 'localhost:8080'
    cas_server: str = 'https://localhost:8443'
    database_url: str = 'sqlite:////var/lib/filebrowser/filebrowser.db'
    jwt_secret: str = 'change-me'
    jwt_algorithm: str = 'HS256'
    session_expire_minutes: int = Field(default=120, ge=1, le=24 * 60)
    files_root: str = '/srv/filebrowser'
    log_level: str = 'info'
    cors_origins: str = ''


settings = Settings()
