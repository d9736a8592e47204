"""
Pitstop config: load from env.

load_postgres_config() for the database pool, load_app_config() for model
backends, messaging channels and the weather provider.
"""
from pitstop.config.app import AppConfig, load_app_config
from pitstop.config.postgres import PostgresConfig, load_postgres_config

__all__ = [
    "AppConfig",
    "load_app_config",
    "PostgresConfig",
    "load_postgres_config",
]
