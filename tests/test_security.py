"""Tests for security utilities (mask_sensitive, check_bearer_token)."""

from odoo_mcp_server.security.security import check_bearer_token, mask_sensitive


# ---------------------------------------------------------------------------
# mask_sensitive
# ---------------------------------------------------------------------------

class TestMaskSensitive:
    """Test masking of secrets."""

    def test_masks_password(self):
        config = {"url": "http://odoo.test", "username": "admin", "password": "secret123"}
        masked = mask_sensitive(config)

        assert masked["password"] == "***MASKED***"
        assert masked["username"] == "admin"
        assert masked["url"] == "http://odoo.test"

    def test_masks_nested_values(self):
        config = {"server": {"auth_token": "abc", "port": 3001}}
        masked = mask_sensitive(config)

        assert masked["server"]["auth_token"] == "***MASKED***"
        assert masked["server"]["port"] == 3001

    def test_empty_secret_becomes_none(self):
        assert mask_sensitive({"password": ""})["password"] is None

    def test_input_not_modified(self):
        config = {"password": "secret"}
        mask_sensitive(config)
        assert config["password"] == "secret"


# ---------------------------------------------------------------------------
# check_bearer_token
# ---------------------------------------------------------------------------

class TestCheckBearerToken:
    """Test bearer token checks."""

    def test_no_token_configured(self):
        assert check_bearer_token(None, None) is True
        assert check_bearer_token("Bearer anything", "") is True

    def test_matching_token(self):
        assert check_bearer_token("Bearer s3cret", "s3cret") is True

    def test_missing_header(self):
        assert check_bearer_token(None, "s3cret") is False

    def test_wrong_scheme(self):
        assert check_bearer_token("Basic s3cret", "s3cret") is False

    def test_wrong_token(self):
        assert check_bearer_token("Bearer nope", "s3cret") is False
