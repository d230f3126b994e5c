"""Tests for connection configuration."""
import os
from unittest.mock import patch

import pytest
import yaml

from pgshift.config.connection import (
    ConnectionConfigError,
    load_connection_config,
    validate_connection_config,
)
from pgshift.models.connection import ConnectionConfig


def test_load_from_explicit_file(tmp_path):
    """Test loading config from explicit file."""
    config_file = tmp_path / "source.yaml"
    config_data = {
        'host': 'db.internal',
        'port': 6432,
        'database': 'shop',
        'username': 'migrator',
        'password': 'secret'
    }
    config_file.write_text(yaml.dump(config_data))

    config = load_connection_config(str(config_file), 'source')

    assert config.host == 'db.internal'
    assert config.port == 6432
    assert config.username == 'migrator'
    assert config.sslmode == 'require'


def test_user_key_is_accepted(tmp_path):
    """Test the libpq-style 'user' key maps to username."""
    config_file = tmp_path / "conn.yaml"
    config_file.write_text(yaml.dump({'host': 'h', 'database': 'd', 'user': 'u'}))

    config = load_connection_config(str(config_file))

    assert config.username == 'u'


def test_load_from_default_path(tmp_path):
    """Test loading config from default ~/.pgshift path."""
    with patch('pathlib.Path.home', return_value=tmp_path):
        pgshift_dir = tmp_path / '.pgshift'
        pgshift_dir.mkdir()
        config_file = pgshift_dir / 'target.yaml'
        config_file.write_text(yaml.dump({
            'host': 'default-host',
            'database': 'warehouse',
            'username': 'loader'
        }))

        config = load_connection_config(profile='target')

        assert config.host == 'default-host'
        assert config.database == 'warehouse'


def test_load_from_environment_variables(tmp_path):
    """Test loading config from environment variables."""
    with patch.dict(os.environ, {
        'PGSHIFT_SOURCE_HOST': 'env-host',
        'PGSHIFT_SOURCE_PORT': '5433',
        'PGSHIFT_SOURCE_DATABASE': 'env-db',
        'PGSHIFT_SOURCE_USERNAME': 'env-user',
        'PGSHIFT_SOURCE_SSLMODE': 'disable'
    }):
        with patch('pathlib.Path.home', return_value=tmp_path):
            config = load_connection_config(profile='source')

            assert config.host == 'env-host'
            assert config.port == 5433
            assert config.username == 'env-user'
            assert config.sslmode == 'disable'


def test_load_explicit_overrides_default(tmp_path):
    """Test that explicit file overrides default path."""
    explicit_file = tmp_path / "explicit.yaml"
    explicit_file.write_text(yaml.dump({'host': 'explicit-host', 'database': 'd'}))

    default_path = tmp_path / '.pgshift' / 'source.yaml'
    default_path.parent.mkdir(parents=True)
    default_path.write_text(yaml.dump({'host': 'default-host'}))

    with patch('pathlib.Path.home', return_value=tmp_path):
        config = load_connection_config(str(explicit_file), 'source')

        assert config.host == 'explicit-host'


def test_load_defaults_when_nothing_configured(tmp_path):
    """Test defaults are returned when no source is available."""
    with patch.dict(os.environ, {}, clear=True):
        with patch('pathlib.Path.home', return_value=tmp_path):
            config = load_connection_config(profile='source')

    assert config == ConnectionConfig()


def test_load_missing_file_raises():
    """Test that a missing explicit file raises."""
    with pytest.raises(ConnectionConfigError, match="not found"):
        load_connection_config('/nonexistent/conn.yaml')


def test_load_invalid_yaml_raises(tmp_path):
    """Test that malformed YAML raises."""
    config_file = tmp_path / "bad.yaml"
    config_file.write_text("host: [unclosed")

    with pytest.raises(ConnectionConfigError, match="Invalid YAML"):
        load_connection_config(str(config_file))


def test_load_non_dict_yaml_raises(tmp_path):
    """Test that a YAML list is rejected."""
    config_file = tmp_path / "list.yaml"
    config_file.write_text(yaml.dump(['a', 'b']))

    with pytest.raises(ConnectionConfigError, match="YAML dictionary"):
        load_connection_config(str(config_file))


def test_load_invalid_port_raises(tmp_path):
    """Test that settings failing validation raise ConnectionConfigError."""
    config_file = tmp_path / "port.yaml"
    config_file.write_text(yaml.dump({'host': 'h', 'port': 'not-a-port'}))

    with pytest.raises(ConnectionConfigError, match="Invalid connection settings"):
        load_connection_config(str(config_file))


def test_validate_connection_config_success():
    """Test validation passes with required fields."""
    config = ConnectionConfig(host='h', database='d', username='u')

    assert validate_connection_config(config) is True


def test_validate_connection_config_missing_fields():
    """Test validation lists missing fields for the profile."""
    config = ConnectionConfig(host='h')

    with pytest.raises(ConnectionConfigError) as excinfo:
        validate_connection_config(config, 'target')

    message = str(excinfo.value)
    assert "for target" in message
    assert "database" in message
    assert "username" in message
    assert "--target-conn" in message
