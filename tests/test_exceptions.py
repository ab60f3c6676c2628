"""
Unit tests for the custom exception hierarchy.

Validates exception creation, inheritance, and attribute storage.
"""

import pytest

from memberhub.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    MemberHubError,
    NotFoundError,
    PreconditionError,
    StoreError,
    StoreRequestError,
    TransportError,
)


class TestMemberHubError:
    """Tests for the base exception class."""

    def test_basic_creation(self):
        err = MemberHubError("something broke")
        assert str(err) == "something broke"
        assert err.details == {}

    def test_with_details(self):
        err = MemberHubError("oops", details={"code": 42})
        assert err.details["code"] == 42

    def test_is_exception(self):
        assert issubclass(MemberHubError, Exception)


class TestConfigurationError:

    def test_stores_config_path(self):
        err = ConfigurationError("bad config", config_path="config.yaml")
        assert err.config_path == "config.yaml"

    def test_catchable_as_memberhub_error(self):
        with pytest.raises(MemberHubError):
            raise ConfigurationError("invalid")


class TestStoreErrors:

    def test_stores_collection_and_status(self):
        err = StoreRequestError(
            "Failed to create record.",
            collection="users",
            status_code=400,
            details={"data": {"email": {"code": "validation_not_unique"}}},
        )
        assert err.collection == "users"
        assert err.status_code == 400
        assert "email" in err.details["data"]

    @pytest.mark.parametrize(
        "cls", [NotFoundError, TransportError, StoreRequestError, AuthenticationError]
    )
    def test_all_are_store_errors(self, cls):
        assert issubclass(cls, StoreError)
        assert issubclass(cls, MemberHubError)

    def test_authentication_is_a_rejected_request(self):
        assert issubclass(AuthenticationError, StoreRequestError)

    def test_not_found_is_not_a_transport_error(self):
        assert not issubclass(NotFoundError, TransportError)

    def test_defaults(self):
        err = TransportError("down")
        assert err.collection is None
        assert err.status_code is None
        assert err.details == {}


class TestAuthorizationError:

    def test_stores_both_tenants(self):
        err = AuthorizationError("wrong org", tenant_id="org-a", user_tenant_id="org-b")
        assert err.tenant_id == "org-a"
        assert err.user_tenant_id == "org-b"

    def test_is_not_a_store_error(self):
        assert not issubclass(AuthorizationError, StoreError)


class TestPreconditionError:

    def test_stores_operation(self):
        err = PreconditionError("No tenant context", operation="login")
        assert err.operation == "login"
        assert str(err) == "No tenant context"
