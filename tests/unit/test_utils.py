import socket

import url_hunter.recon.utils as utils  # type: ignore[import]


def test_extract_title_strips_whitespace():
    html = "<html><head><title>\n  Admin Panel \n</title></head><body></body></html>"

    assert utils.extract_title(html) == "Admin Panel"


def test_extract_title_handles_missing_title():
    assert utils.extract_title("<html><body>no title</body></html>") == ""
    assert utils.extract_title("   ") == ""
    assert utils.extract_title(None) == ""


def test_extract_subdomain_needs_three_labels():
    assert utils.extract_subdomain("www.example.com") == "www"
    assert utils.extract_subdomain("a.b.example.com") == "a"
    assert utils.extract_subdomain("example.com") == ""
    assert utils.extract_subdomain("") == ""


def test_extract_path_and_query():
    assert utils.extract_path("http://h/login?x=1") == "/login"
    assert utils.extract_path("http://h") == "/"
    assert utils.extract_query("http://h/login?x=1&y=2") == "x=1&y=2"
    assert utils.extract_query("http://h/login") == ""


def test_is_internal_ip():
    for address in ["10.0.0.1", "192.168.1.1", "172.16.5.4", "127.0.0.1", "169.254.1.1", "::1", "fe80::1"]:
        assert utils.is_internal_ip(address) is True
    for address in ["8.8.8.8", "172.32.0.1", "", None, "not-an-ip"]:
        assert utils.is_internal_ip(address) is False


def test_resolve_ip_returns_empty_on_failure(monkeypatch):
    def fail(_host):
        raise socket.gaierror("no such host")

    monkeypatch.setattr(utils.socket, "gethostbyname", fail)

    assert utils.resolve_ip("missing.example.com") == ""
    assert utils.classify_host("missing.example.com") == ("", False)


def test_classify_host_uses_resolver():
    assert utils.classify_host("db.example.com", lambda _host: "192.168.0.10") == ("192.168.0.10", True)
    assert utils.classify_host("www.example.com", lambda _host: "93.184.216.34") == ("93.184.216.34", False)


def test_append_segment_adds_single_slash():
    assert utils.append_segment("http://h/app", "admin") == "http://h/app/admin"
    assert utils.append_segment("http://h/app/", "admin") == "http://h/app/admin"
