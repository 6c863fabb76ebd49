from core.headers import HeaderBuilder

builder = HeaderBuilder()

INBOUND = [
    ("Host", "localhost:3200"),
    ("Origin", "http://localhost:3200"),
    ("Referer", "http://localhost:3200/"),
    ("Connection", "keep-alive"),
    ("Transfer-Encoding", "chunked"),
    ("Accept-Encoding", "gzip, deflate, br"),
    ("Content-Length", "999"),
    ("Content-Type", "application/json"),
    ("Accept", "application/json"),
    ("X-Trace", "one"),
    ("X-Trace", "two"),
]


def _names(headers):
    return [k.lower() for k, _ in headers]


def test_deny_list_is_removed_and_host_replaced():
    out = builder.build_upstream_headers(INBOUND, "open.feishu.cn")

    names = _names(out)
    for denied in ("origin", "referer", "connection", "transfer-encoding", "accept-encoding", "content-length"):
        assert denied not in names
    assert ("host", "open.feishu.cn") in out
    assert names.count("host") == 1


def test_other_headers_and_duplicates_are_kept_in_order():
    out = builder.build_upstream_headers(INBOUND, "open.feishu.cn")

    assert ("Content-Type", "application/json") in out
    assert ("Accept", "application/json") in out
    assert [v for k, v in out if k == "X-Trace"] == ["one", "two"]


def test_content_length_recomputed_from_body():
    out = builder.build_upstream_headers(INBOUND, "h", body=b"12345")

    assert [v for k, v in out if k.lower() == "content-length"] == ["5"]
    assert out[-1] == ("content-length", "5")


def test_no_content_length_without_body():
    out = builder.build_upstream_headers(INBOUND, "h", body=None)

    assert "content-length" not in _names(out)


def test_empty_body_gets_zero_length():
    out = builder.build_upstream_headers([], "h", body=b"")

    assert ("content-length", "0") in out


def test_secret_overrides_client_value_case_insensitively():
    inbound = [("api-key", "client-one"), ("Api-Key", "client-two"), ("Accept", "*/*")]

    out = builder.build_upstream_headers(inbound, "h", secret_header=("API-KEY", "server-secret"))

    values = [v for k, v in out if k.lower() == "api-key"]
    assert values == ["server-secret"]


def test_client_headers_cors_and_allowlist():
    upstream = {
        "content-type": "image/png",
        "content-encoding": "gzip",
        "content-disposition": "inline",
        "content-length": "12345",
        "set-cookie": "a=b",
        "server": "nginx",
    }

    out = builder.build_client_headers(upstream, 42, 200)

    assert out == {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
        "Access-Control-Allow-Headers": "*",
        "content-type": "image/png",
        "content-encoding": "gzip",
        "content-disposition": "inline",
        "content-length": "42",
    }


def test_client_headers_skip_absent_allowlist_entries():
    out = builder.build_client_headers({}, 0, 200)

    assert "content-type" not in out
    assert out["content-length"] == "0"
    assert out["Access-Control-Allow-Origin"] == "*"


def test_no_content_length_on_bodyless_status():
    assert "content-length" not in builder.build_client_headers({}, 0, 204)
    assert "content-length" not in builder.build_client_headers({}, 0, 304)


def test_preflight_headers():
    assert builder.preflight_headers() == {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
        "Access-Control-Allow-Headers": "*",
        "Access-Control-Max-Age": "86400",
    }
