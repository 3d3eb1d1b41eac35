"""Unit tests for BackendRegistry."""

from unittest.mock import Mock, patch

import pytest

from lsmux.backends.noop import NoopLanguageServer
from lsmux.backends.registry import BackendRegistry


class NotABackend:
    """Class that doesn't inherit from BaseLanguageServer."""

    def hover(self):
        pass


class TestBackendRegistry:
    """Test suite for BackendRegistry functionality."""

    def test_registry_initialization(self):
        """Registry knows the noop backend and both multiplexer variants."""
        registry = BackendRegistry()

        for backend_name in ["noop", "jedi", "jedi_lsp"]:
            assert backend_name in registry._backend_specs
        assert registry.list_loaded() == {}

    def test_noop_backend_loads(self):
        registry = BackendRegistry()

        assert registry.get_backend("noop") is NoopLanguageServer
        assert registry.list_loaded() == {"noop": NoopLanguageServer}

    @patch("importlib.import_module")
    def test_successful_backend_loading(self, mock_import_module):
        # Arrange
        registry = BackendRegistry()
        mock_module = Mock()
        mock_module.CustomServer = NoopLanguageServer
        mock_import_module.return_value = mock_module
        registry.add_backend_spec("custom", "custom.module:CustomServer")

        # Act
        backend_class = registry.get_backend("custom")

        # Assert
        assert backend_class is NoopLanguageServer
        assert "custom" in registry._backends
        assert registry.get_failure_reason("custom") is None
        mock_import_module.assert_called_once_with("custom.module")

    @patch("importlib.import_module")
    def test_backend_loading_import_error(self, mock_import_module):
        registry = BackendRegistry()
        mock_import_module.side_effect = ImportError("No module named 'missing'")
        registry.add_backend_spec("missing", "missing.module:Server")

        assert registry.get_backend("missing") is None
        assert "Import error" in registry.get_failure_reason("missing")
        assert "missing" not in registry._backends

    @patch("importlib.import_module")
    def test_backend_loading_attribute_error(self, mock_import_module):
        registry = BackendRegistry()
        mock_import_module.return_value = Mock(spec=[])
        registry.add_backend_spec("no_class", "some.module:Missing")

        assert registry.get_backend("no_class") is None
        assert "Class not found" in registry.get_failure_reason("no_class")

    @patch("importlib.import_module")
    def test_backend_validation_failure(self, mock_import_module):
        registry = BackendRegistry()
        mock_module = Mock()
        mock_module.NotABackend = NotABackend
        mock_import_module.return_value = mock_module
        registry.add_backend_spec("invalid", "some.module:NotABackend")

        assert registry.get_backend("invalid") is None
        assert "not a BaseLanguageServer subclass" in registry.get_failure_reason(
            "invalid"
        )

    @patch("importlib.import_module")
    def test_failed_backend_is_not_retried(self, mock_import_module):
        registry = BackendRegistry()
        mock_import_module.side_effect = ImportError("nope")
        registry.add_backend_spec("flaky", "flaky.module:Server")

        registry.get_backend("flaky")
        registry.get_backend("flaky")

        mock_import_module.assert_called_once()

    def test_unknown_backend(self):
        registry = BackendRegistry()

        assert registry.get_backend("nonexistent") is None
        assert registry.get_failure_reason("nonexistent") is None

    def test_register_backend_directly(self):
        registry = BackendRegistry()

        registry.register_backend("direct", NoopLanguageServer)

        assert registry.get_backend("direct") is NoopLanguageServer
        assert "direct" in registry.names()

    def test_register_invalid_backend(self):
        registry = BackendRegistry()

        with pytest.raises(TypeError, match="BaseLanguageServer subclass"):
            registry.register_backend("invalid", NotABackend)

    def test_register_clears_previous_failure(self):
        registry = BackendRegistry()
        registry._failed_backends["recovering"] = "Import error: gone"

        registry.register_backend("recovering", NoopLanguageServer)

        assert registry.get_failure_reason("recovering") is None
        assert registry.get_backend("recovering") is NoopLanguageServer

    def test_unregister_backend(self):
        registry = BackendRegistry()
        registry.register_backend("temporary", NoopLanguageServer)

        registry.unregister_backend("temporary")

        assert registry.get_backend("temporary") is None

    def test_add_backend_spec_clears_cache(self):
        registry = BackendRegistry()
        registry._backends["noop"] = Mock()
        registry._failed_backends["noop"] = "stale"

        registry.add_backend_spec("noop", "lsmux.backends.noop:NoopLanguageServer")

        assert registry.get_backend("noop") is NoopLanguageServer

    def test_add_backend_spec_rejects_malformed_spec(self):
        registry = BackendRegistry()

        with pytest.raises(ValueError, match="module.path:ClassName"):
            registry.add_backend_spec("bad", "no_colon_here")

    @patch("importlib.import_module")
    def test_list_available(self, mock_import_module):
        registry = BackendRegistry()
        registry.register_backend("noop", NoopLanguageServer)
        mock_import_module.side_effect = ImportError("not installed")

        available = registry.list_available()

        assert available["noop"] is True
        assert available["jedi"] is False
        assert available["jedi_lsp"] is False
