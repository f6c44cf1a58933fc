import pytest
from pydantic import ValidationError

from pixel_exif.exceptions import ConfigurationError
from pixel_exif.models.config import ExtractorConfig
from pixel_exif.models.digests import DigestAlgorithm
from pixel_exif.storage.config_manager import ConfigManager


class TestExtractorConfig:
    def test_defaults(self):
        config = ExtractorConfig()
        assert config.ascii_width == 60
        assert config.max_workers == 8
        assert config.algorithms == list(DigestAlgorithm)
        assert config.json_logs is False

    def test_algorithm_names_normalized(self):
        config = ExtractorConfig(digest_algorithms=["sha256", "crc-32", "SHA-256"])
        assert config.digest_algorithms == ["SHA-256", "CRC32"]

    @pytest.mark.parametrize(
        "overrides",
        [
            {"ascii_width": 0},
            {"ascii_width": 401},
            {"max_workers": 0},
            {"max_workers": 64},
            {"digest_algorithms": []},
            {"digest_algorithms": ["sha1"]},
        ],
    )
    def test_invalid(self, overrides):
        with pytest.raises(ValidationError):
            ExtractorConfig(**overrides)

    def test_ini_keys(self):
        assert ExtractorConfig.get_ini_keys() == {
            "ascii_width",
            "max_workers",
            "digest_algorithms",
            "log_dir",
            "json_logs",
        }


class TestConfigManager:
    def test_missing_file_uses_defaults(self, tmp_path):
        config = ConfigManager(tmp_path / "config.ini").load_config()
        assert config == ExtractorConfig()

    def test_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "config.ini"
        manager = ConfigManager(path)
        manager.save_new_config({"ascii_width": 100, "digest_algorithms": ["MD5"], "json_logs": True})

        config = ConfigManager(path).load_config()
        assert config.ascii_width == 100
        assert config.digest_algorithms == ["MD5"]
        assert config.json_logs is True
        assert config.max_workers == 8

    def test_cli_options_override_file(self, tmp_path):
        path = tmp_path / "config.ini"
        ConfigManager(path).save_new_config({"max_workers": 4})
        config = ConfigManager(path).load_config({"max_workers": 2})
        assert config.max_workers == 2

    def test_migrates_missing_keys(self, tmp_path):
        path = tmp_path / "config.ini"
        path.write_text("[DEFAULT]\nascii_width = 80\n", encoding="utf-8")

        config = ConfigManager(path).load_config()
        assert config.ascii_width == 80
        content = path.read_text(encoding="utf-8")
        assert "max_workers = 8" in content
        assert "digest_algorithms = SHA-256,SHA-512,MD5,CRC32" in content

    def test_invalid_value(self, tmp_path):
        path = tmp_path / "config.ini"
        path.write_text("[DEFAULT]\nmax_workers = many\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Invalid value"):
            ConfigManager(path).load_config()

    def test_out_of_range_value(self, tmp_path):
        path = tmp_path / "config.ini"
        path.write_text("[DEFAULT]\nascii_width = 1000\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="validation failed"):
            ConfigManager(path).load_config()

    def test_unparseable_file(self, tmp_path):
        path = tmp_path / "config.ini"
        path.write_text("this is not ini\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            ConfigManager(path).load_config()
