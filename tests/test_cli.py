import json

from click.testing import CliRunner

from erp_modules import main


def test_show_config_masks_secrets(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ERP_SECRET_KEY", "topsecret")
    monkeypatch.setenv("ERP_CACHE_MAX_ENTRIES", "50")
    result = CliRunner().invoke(main, ["show-config"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["secret_key"] == "***"
    assert data["cache_max_entries"] == 50


def test_invalid_config_reports_click_error(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ERP_DATABASE_TYPE", "oracle")
    result = CliRunner().invoke(main, ["show-config"])
    assert result.exit_code == 1
    assert "Unsupported database type" in result.output


def test_notify_without_webhook_prints_normalized_error(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("ERP_NOTIFICATION_WEBHOOK_URL", raising=False)
    result = CliRunner().invoke(main, ["notify", "--to", "u-1", "--title", "Hi"])
    assert result.exit_code == 1
    payload = json.loads(result.output.strip().splitlines()[-1])
    assert payload["error"]["operation"] == "notification.send"
    assert payload["error"]["hint"] == "Check required parameters."
