import io

from rich.console import Console

from core.config import Config, TokenSettings
from ui.console import ConsoleLogger, print_startup_banner, secret_status
from ui.dashboard import Dashboard
from ui.log_utils import body_preview, clear_logs, mask, redact_headers, write_cli_log


def test_write_cli_log_appends_structured_line(tmp_path):
    log_file = tmp_path / "logs" / "gateway.log"

    write_cli_log("RESPONSE", "https://open.feishu.cn/x", log_file=log_file, status=200, elapsed_ms=12)
    write_cli_log("ERROR", "boom", log_file=log_file)

    first, second = log_file.read_text().splitlines()
    assert first.endswith("RESPONSE: https://open.feishu.cn/x status=200 elapsed_ms=12")
    assert first.startswith("[")
    assert second.endswith("ERROR: boom")


def test_clear_logs(tmp_path):
    log_file = tmp_path / "gateway.log"
    log_file.write_text("old\n")

    clear_logs(log_file)

    assert log_file.read_text() == ""


def test_redact_headers():
    headers = [
        ("API-KEY", "gemini-server-secret"),
        ("Authorization", "Bearer t-1234567890abcdef"),
        ("X-Custom-Secret", "hunter2hunter2"),
        ("Accept", "*/*"),
    ]

    redacted = dict(redact_headers(headers, {"x-custom-secret"}))

    assert redacted["API-KEY"] == "gemini...cret"
    assert redacted["Authorization"] == "Bearer...cdef"
    assert redacted["X-Custom-Secret"] == "***"
    assert redacted["Accept"] == "*/*"


def test_mask_short_values():
    assert mask("short") == "***"


def test_body_preview_truncates_and_tolerates_binary():
    assert body_preview(b"abcdef", 3) == "abc"
    assert body_preview(b"\xff\xfeok", 10) == "\ufffd\ufffdok"


def test_console_logger_prints_and_writes(tmp_path):
    out = Console(file=io.StringIO(), width=200)
    log_file = tmp_path / "gateway.log"
    logger = ConsoleLogger(out, log_file)

    logger.log_proxy("POST", "/api/feishu/im", "https://open.feishu.cn/open-apis/im")
    logger.log_response("feishu", 200, 35, "https://open.feishu.cn/open-apis/im")
    logger.log_error("feishu", 400, "[bad] request")

    printed = out.file.getvalue()
    assert "[proxy] POST /api/feishu/im -> https://open.feishu.cn/open-apis/im" in printed
    assert "[resp] 200 35ms https://open.feishu.cn/open-apis/im" in printed
    assert "[bad] request" in printed
    assert len(log_file.read_text().splitlines()) == 3


def test_secret_status_never_exposes_values():
    config = Config(
        token=TokenSettings(app_id="cli_1", app_secret=""),
        secrets={"gemini_api_key": "g-secret"},
    )

    assert secret_status(config) == {
        "FEISHU_APP_ID": True,
        "FEISHU_APP_SECRET": False,
        "GEMINI_API_KEY": True,
    }

    out = Console(file=io.StringIO(), width=200)
    print_startup_banner(config, out)
    printed = out.file.getvalue()
    assert "g-secret" not in printed
    assert "cli_1" not in printed
    assert "/api/aihub-prod/" in printed


def test_dashboard_tracks_requests_without_live(tmp_path):
    dashboard = Dashboard(Config(), log_file=tmp_path / "gateway.log")

    dashboard.log_response("feishu", 200, 10, "https://open.feishu.cn/open-apis/a")
    dashboard.log_response("feishu", 404, 11, "https://open.feishu.cn/open-apis/b")
    dashboard.log_error("feishu", 404, "not\nfound " * 20)

    assert dashboard._request_count["feishu"] == 2
    assert dashboard._requests[0].status == 404
    assert "\n" not in dashboard._errors[0]

    out = Console(file=io.StringIO(), width=160, height=40)
    out.print(dashboard._build_layout())
    assert "feishu: 2" in out.file.getvalue()
