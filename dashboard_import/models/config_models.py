from __future__ import annotations

from dataclasses import dataclass

"""Config dataclasses for the CSV bulk-import tool.

These are the typed domain view of config/import.yml. The loader in
dashboard_import/config/loader.py builds them after schema validation and
applies defaults for anything the YAML omits.
"""


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables (and .env) take precedence over these values.
    """
    host: str | None
    port: int | None
    user: str | None
    password: str | None
    database: str | None
    dsn: str | None


@dataclass(frozen=True)
class TargetConfig:
    """Persistence settings for one import target (shops / inventory / ...)."""
    name: str  # target name (key in targets dict)
    table: str  # destination table
    timestamp_columns: tuple[str, ...] = ()  # filled server-side with now() at commit


@dataclass(frozen=True)
class ReferenceTablesConfig:
    """Tables the reference snapshot is read from."""
    agents: str = "agents"
    clients: str = "clients"
    inventory: str = "inventory"


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for the import tool."""
    targets: dict[str, TargetConfig]  # target name -> persistence settings
    reference_tables: ReferenceTablesConfig
    timezone: str  # applied to naive dates (default: "UTC")
    page_size: int  # execute_values page_size
    revalidate_on_commit: bool  # re-run validation against fresh reference data before commit
    rejection_log_dir: str  # JSON Lines rejection log directory
    database: DatabaseConfig

    def target(self, name: str) -> TargetConfig:
        try:
            return self.targets[name]
        except KeyError:
            raise KeyError(f"unknown import target: {name}") from None
