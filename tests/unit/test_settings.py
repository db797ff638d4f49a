"""
Unit tests for application settings.

Settings are built with _env_file=None so a developer's .env never
leaks into the tests.
"""

import pytest

from azure_reader.config.settings import Settings
from azure_reader.core.blobs import DEFAULT_PROCESSING_DIRECTIVES, MountConfiguration


class TestSettings:
    """Tests for loading and interpreting settings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("AZURE_CONNECTION_STRING", raising=False)
        settings = Settings(_env_file=None)

        assert settings.azure_prefix == "/azure"
        assert settings.azure_redirect_if_unmodified is True
        assert set(settings.processing_directives_list) == DEFAULT_PROCESSING_DIRECTIVES

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("AZURE_CONNECTION_STRING", "images")
        monkeypatch.setenv("AZURE_REDIRECT_IF_UNMODIFIED", "false")
        monkeypatch.setenv("CONNECTION_STRINGS", '{"images": "UseDevelopmentStorage=true"}')

        settings = Settings(_env_file=None)

        assert settings.azure_connection_string == "images"
        assert settings.azure_redirect_if_unmodified is False
        assert settings.connection_strings == {"images": "UseDevelopmentStorage=true"}

    def test_processing_directives_list(self):
        settings = Settings(_env_file=None, processing_directives=" width, thumb ,,")
        assert settings.processing_directives_list == ["width", "thumb"]

    def test_reader_options_build_mount_configuration(self):
        settings = Settings(
            _env_file=None,
            azure_connection_string="images",
            azure_blob_endpoint="https://cdn.example/",
            azure_redirect_if_unmodified=False,
            azure_prefix="/media/",
        )

        config = MountConfiguration.from_options(settings.reader_options())

        assert config.connection_secret == "images"
        assert config.endpoint_override == "https://cdn.example/"
        assert config.redirect_if_unmodified is False
        assert config.prefix == "/media"

    @pytest.mark.parametrize("mock_mode, connection_string, missing", [
        (False, "", ["AZURE_CONNECTION_STRING"]),
        (False, "images", []),
        (True, "", []),
    ])
    def test_validate_required_fields(self, mock_mode, connection_string, missing):
        settings = Settings(
            _env_file=None,
            azure_mock_mode=mock_mode,
            azure_connection_string=connection_string,
        )
        assert settings.validate_required_fields() == missing

    def test_mock_mode_without_endpoint_does_not_redirect(self):
        """Mock storage has no public URL to redirect to."""
        settings = Settings(_env_file=None, azure_mock_mode=True)

        config = MountConfiguration.from_options(settings.reader_options())

        assert config.redirect_if_unmodified is False

    def test_mock_mode_with_endpoint_redirects(self):
        settings = Settings(
            _env_file=None,
            azure_mock_mode=True,
            azure_blob_endpoint="https://cdn.example/",
        )

        config = MountConfiguration.from_options(settings.reader_options())

        assert config.redirect_if_unmodified is True
