import pytest
from fastapi import HTTPException

from gas_payer.api.security import ApiKeyEntry, SecurityConfig, authorize, load_security_config

CONFIG = SecurityConfig(
    api_keys=[
        ApiKeyEntry(key="k1", name="acme", allowed_ips=["203.0.113.7", "10.0.0.0/24"], client_credentials="tok"),
        ApiKeyEntry(key="k2", name="globex", allowed_ips=["not-an-ip", "::1"]),
    ]
)


@pytest.mark.parametrize(
    "host, allowed",
    [
        ("203.0.113.7", True),
        ("10.0.0.200", True),
        ("10.0.1.1", False),
        ("testclient", False),
        (None, False),
    ],
)
def test_whitelist(host, allowed):
    assert CONFIG.api_keys[0].allows(host) is allowed


def test_invalid_whitelist_entries_are_skipped():
    assert CONFIG.api_keys[1].allows("::1") is True


def test_authorize_returns_entry():
    entry = authorize(CONFIG, "k1", "10.0.0.5")
    assert entry.name == "acme"
    assert entry.client_credentials == "tok"


@pytest.mark.parametrize(
    "api_key, host, status",
    [(None, "10.0.0.5", 401), ("nope", "10.0.0.5", 401), ("k1", "192.168.1.1", 403)],
)
def test_authorize_rejects(api_key, host, status):
    with pytest.raises(HTTPException) as excinfo:
        authorize(CONFIG, api_key, host)
    assert excinfo.value.status_code == status


def test_load_security_config_reads_camel_case(tmp_path):
    path = tmp_path / "security.json"
    path.write_text('{"apiKeys": [{"key": "k", "name": "n", "allowedIps": ["127.0.0.1"]}]}')

    config = load_security_config(str(path))

    assert config.find("k").allowed_ips == ["127.0.0.1"]
    assert config.find("k").client_credentials is None
    assert config.find("other") is None
