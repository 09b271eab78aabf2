"""
Tests for configuration loading and validation
"""

import pytest
import yaml

from gatekeeper.exceptions import ConfigurationError
from gatekeeper.utils.config_loader import ConfigLoader, GatekeeperConfig, load_config


BASE = {
    'device_hostname': 'asa1.test',
    'device_user': 'gatekeeper',
    'device_password': 'secret',
    'server_endpoint': 'http://sg-sync.test/vpn/sessions',
}


@pytest.fixture
def config_file(tmp_path):
    def write(data):
        path = tmp_path / "gatekeeper.conf.yml"
        path.write_text(yaml.safe_dump(data))
        return str(path)
    return write


class TestConfigLoader:

    def test_load(self, config_file):
        assert ConfigLoader.load(config_file(BASE)) == BASE

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigLoader.load(str(tmp_path / "nope.yml"))

    def test_missing_required_keys(self, config_file, monkeypatch):
        monkeypatch.delenv('GATEKEEPER_DEVICE_PASSWORD', raising=False)

        with pytest.raises(ValueError, match="device_password"):
            ConfigLoader.load_with_env_override(
                config_file({'device_hostname': 'x'}), required_keys=['device_password']
            )

    def test_env_override(self, config_file, monkeypatch):
        monkeypatch.setenv('GATEKEEPER_DEVICE_PASSWORD', 'from-env')
        monkeypatch.setenv('GATEKEEPER_MAX_ATTEMPTS', '5')

        config = ConfigLoader.load_with_env_override(config_file(BASE))

        assert config['device_password'] == 'from-env'
        assert config['max_attempts'] == '5'

    def test_non_mapping_document(self, tmp_path):
        path = tmp_path / "list.yml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ValueError, match="mapping"):
            ConfigLoader.load(str(path))


class TestGatekeeperConfig:

    def test_defaults(self):
        config = GatekeeperConfig.from_dict(BASE)

        assert config.max_attempts == 3
        assert config.device_port == 22
        assert config.cache_file is None
        assert config.notify_enabled is False

    def test_coerces_env_strings(self):
        config = GatekeeperConfig.from_dict({
            **BASE,
            'max_attempts': '5',
            'lock_timeout': '2.5',
            'notify_enabled': 'yes',
            'notify_endpoint': 'https://chat.test/',
        })

        assert config.max_attempts == 5
        assert config.lock_timeout == 2.5
        assert config.notify_enabled is True

    def test_unknown_keys_ignored(self):
        config = GatekeeperConfig.from_dict({**BASE, 'aws_region': 'eu-west-1'})
        assert not hasattr(config, 'aws_region')

    @pytest.mark.parametrize("override", [
        {'max_attempts': 0},
        {'max_attempts': 'many'},
        {'device_timeout': -1},
        {'notify_enabled': True},
        {'notify_enabled': 'maybe'},
    ])
    def test_invalid_values(self, override):
        with pytest.raises(ConfigurationError):
            GatekeeperConfig.from_dict({**BASE, **override})

    def test_missing_required(self):
        with pytest.raises(ConfigurationError, match="server_endpoint"):
            GatekeeperConfig.from_dict({k: v for k, v in BASE.items() if k != 'server_endpoint'})


class TestLoadConfig:

    def test_load_config(self, config_file):
        config = load_config(config_file({**BASE, 'max_attempts': 4}))
        assert config.max_attempts == 4
        assert config.device_hostname == 'asa1.test'

    def test_required_key_from_environment(self, config_file, monkeypatch):
        data = {k: v for k, v in BASE.items() if k != 'device_password'}
        monkeypatch.setenv('GATEKEEPER_DEVICE_PASSWORD', 'from-env')

        assert load_config(config_file(data)).device_password == 'from-env'

    def test_missing_file_is_configuration_error(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(str(tmp_path / "nope.yml"))

    def test_invalid_yaml_is_configuration_error(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("device_hostname: [unclosed\n")

        with pytest.raises(ConfigurationError):
            load_config(str(path))
