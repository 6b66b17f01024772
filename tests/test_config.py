"""Tests for machine_inventory.config — Settings defaults and env override."""

from __future__ import annotations


class TestSettings:
    def test_default_values(self):
        from machine_inventory.config import Settings
        s = Settings()
        assert s.app_name == "Machine Inventory"
        assert s.debug is False
        assert s.db_table == "machine_info"
        assert s.db_transactional is False
        assert s.winrm_transport == "ntlm"
        assert s.winrm_scheme == "http"
        assert s.winrm_port == 5985
        assert s.ping_count == 1
        assert s.probe_on_check is False

    def test_db_path_points_to_db_dir(self):
        from machine_inventory.config import Settings
        s = Settings()
        assert s.db_path.endswith("inventory.db")
        assert "db" in s.db_path

    def test_optional_timeouts_unset(self):
        from machine_inventory.config import Settings
        s = Settings()
        assert s.winrm_operation_timeout is None
        assert s.winrm_read_timeout is None
        assert s.hosts_file is None

    def test_base_dir_and_db_dir(self):
        from machine_inventory.config import BASE_DIR, DB_DIR
        assert BASE_DIR.is_dir()
        assert DB_DIR == BASE_DIR / "db"

    def test_env_prefix(self):
        from machine_inventory.config import Settings
        assert Settings.model_config["env_prefix"] == "MINV_"

    def test_env_override(self, monkeypatch):
        from machine_inventory.config import Settings
        monkeypatch.setenv("MINV_DB_TABLE", "servers")
        monkeypatch.setenv("MINV_WINRM_PORT", "5986")
        monkeypatch.setenv("MINV_DB_TRANSACTIONAL", "true")
        s = Settings()
        assert s.db_table == "servers"
        assert s.winrm_port == 5986
        assert s.db_transactional is True
