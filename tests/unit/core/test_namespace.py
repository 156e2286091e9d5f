"""
Unit tests for key namespace mapping.
"""

import pytest

from azac.core import namespace


class TestNamespace:
    """Test suite for prefixing and stripping application keys."""

    def test_prefix(self):
        """Test the application and separator are prepended."""
        assert namespace.prefix("api", ":", "Db:Host") == "api:Db:Host"

    def test_prefix_custom_separator(self):
        """Test a multi-character separator."""
        assert namespace.prefix("api", "__", "Db") == "api__Db"

    def test_prefix_without_app(self):
        """Test keys are unchanged without an application."""
        assert namespace.prefix(None, ":", "Db:Host") == "Db:Host"
        assert namespace.prefix("", ":", "Db:Host") == "Db:Host"

    @pytest.mark.parametrize("key", ["Db:Host", "x", "a:b:c", ""])
    def test_strip_inverts_prefix(self, key):
        """Test stripping undoes prefixing."""
        assert namespace.strip("api", ":", namespace.prefix("api", ":", key)) == key

    def test_strip_foreign_key(self):
        """Test keys of another application come back unchanged."""
        assert namespace.strip("api", ":", "web:Db:Host") == "web:Db:Host"

    def test_strip_requires_separator(self):
        """Test a key that only starts with the application name is not stripped."""
        assert namespace.strip("api", ":", "apiVersion") == "apiVersion"

    def test_scope_filter(self):
        """Test the listing filter for an application."""
        assert namespace.scope_filter("api", ":") == "api:*"
        assert namespace.scope_filter(None, ":") == "*"
