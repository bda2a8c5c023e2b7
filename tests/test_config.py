"""Configuration loading."""

import logging

import pytest

from egsphsp.config import DEFAULT_CONFIG, load_config, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_defaults():
    config = load_config()
    assert config == DEFAULT_CONFIG
    assert config is not DEFAULT_CONFIG
    assert config['sample']['rate'] == 10
    assert config['io']['strict_length'] is False


def test_yaml_overrides(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text("io:\n"
                    "  buffer_size: 4096\n"
                    "sample:\n"
                    "  seed: 17\n")
    config = load_config(path)
    assert config['io']['buffer_size'] == 4096
    assert config['io']['strict_length'] is False
    assert config['sample']['seed'] == 17
    assert config['sample']['rate'] == 10
    assert DEFAULT_CONFIG['io']['buffer_size'] != 4096


def test_empty_file(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text("")
    assert load_config(path) == DEFAULT_CONFIG


@pytest.mark.parametrize("text", [
    "io:\n  buffer: 10\n",
    "output: here\n",
    "sample: 3\n",
    "- a\n- b\n",
    "io: [unclosed\n",
])
def test_malformed(tmp_path, text):
    path = tmp_path / 'config.yaml'
    path.write_text(text)
    with pytest.raises(ValueError):
        load_config(path)


@pytest.mark.parametrize("text", [
    "sample:\n  rate: 0\n",
    "sample:\n  rate: 2.5\n",
    "sample:\n  seed: abc\n",
    "io:\n  buffer_size: -1\n",
    "logging:\n  level: LOUD\n",
    "sample:\n  rate: true\n",
    "sample:\n  seed: false\n",
    "io:\n  buffer_size: true\n",
])
def test_invalid_values(tmp_path, text):
    path = tmp_path / 'config.yaml'
    path.write_text(text)
    with pytest.raises(ValueError):
        load_config(path)


def test_setup_logging(restore_root_logger):
    config = load_config()
    setup_logging(config)
    assert restore_root_logger.level == logging.INFO
    assert len(restore_root_logger.handlers) == 1

    setup_logging(config, verbose=True)
    assert restore_root_logger.level == logging.DEBUG
    assert len(restore_root_logger.handlers) == 1
