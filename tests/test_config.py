from kiosk_edge.config import KioskSettings, load_env_file, token_from_url


def test_token_from_url():
    assert token_from_url("https://frame.local/kiosk/abc-123/calendar") == "abc-123"
    assert token_from_url("https://frame.local/kiosk/abc-123?x=1") == "abc-123"
    assert token_from_url("https://frame.local/dashboard") is None
    assert token_from_url(None) is None


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("KIOSK_SERVER_URL", "https://frame.local/api/v1/")
    monkeypatch.delenv("KIOSK_TOKEN", raising=False)
    monkeypatch.setenv("KIOSK_URL", "https://frame.local/kiosk/tok-9")
    monkeypatch.setenv("KIOSK_POLL_INTERVAL", "5")
    monkeypatch.setenv("KIOSK_LAUNCH_BROWSER", "no")
    monkeypatch.setenv("KIOSK_DISPLAY_PORT", "not-a-number")

    settings = KioskSettings.from_env()
    assert settings.server_url == "https://frame.local/api/v1"
    assert settings.token == "tok-9"
    assert settings.poll_interval == 5.0
    assert settings.launch_browser is False
    assert settings.display_port == 8001
    assert settings.fullscreen_delay == 0.5


def test_explicit_token_wins(monkeypatch):
    monkeypatch.setenv("KIOSK_TOKEN", "direct")
    monkeypatch.setenv("KIOSK_URL", "https://frame.local/kiosk/from-url")
    assert KioskSettings.from_env().token == "direct"


def test_load_env_file(tmp_path, monkeypatch):
    env = tmp_path / "kiosk.env"
    env.write_text("# comment\nKIOSK_TOKEN=\"quoted\"\n\nKIOSK_BROWSER = firefox\n")
    # registered with monkeypatch so values written by the loader are undone
    monkeypatch.setenv("KIOSK_TOKEN", "")
    monkeypatch.setenv("KIOSK_BROWSER", "")

    assert load_env_file(env) is True
    settings = KioskSettings.from_env()
    assert settings.token == "quoted"
    assert settings.browser == "firefox"
    assert load_env_file(tmp_path / "missing.env") is False
