from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent
DB_DIR = BASE_DIR / "db"


class Settings(BaseSettings):
    # --- app ---
    app_name: str = "Machine Inventory"
    debug: bool = False
    log_level: str = "INFO"

    # --- database ---
    db_path: str = str(DB_DIR / "inventory.db")
    db_table: str = "machine_info"
    db_transactional: bool = False  # wrap delete+insert in one transaction

    # --- hosts ---
    hosts_file: str | None = None  # YAML list of host names

    # --- winrm ---
    winrm_username: str | None = None
    winrm_password: str | None = None
    winrm_transport: str = "ntlm"
    winrm_scheme: str = "http"
    winrm_port: int = 5985
    winrm_server_cert_validation: str = "validate"
    winrm_operation_timeout: int | None = None  # seconds, pywinrm default when unset
    winrm_read_timeout: int | None = None

    # --- reachability ---
    ping_count: int = 1
    ping_timeout: float = 2.0  # seconds per echo request
    probe_on_check: bool = False

    model_config = {"env_file": ".env", "env_prefix": "MINV_"}


settings = Settings()
