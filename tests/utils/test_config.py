import pytest
from fakecloud.utils import config


@pytest.fixture(autouse=True)
def reset_config():
    config.CONFIG = {}
    yield
    config.CONFIG = {}


def test_load_config(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text("elb:\n  port: 9000\n  dns_suffix: example.test\nlogging:\n  level: DEBUG\n")
    config.load_config(str(path))

    assert config.get_config()['elb']['port'] == 9000
    assert config.get_section('elb') == {'host': 'localhost', 'port': 9000, 'dns_suffix': 'example.test'}
    assert config.get_section('logging')['level'] == 'DEBUG'
    assert config.get_section('route53') == {'host': 'localhost', 'port': 0}


def test_missing_file_falls_back_to_defaults(tmp_path, capsys):
    config.load_config(str(tmp_path / 'nope.yaml'))
    assert config.CONFIG == {}
    assert 'not found' in capsys.readouterr().err
    assert config.get_section('elb')['dns_suffix'] == 'us-east-1.elb.amazonaws.com'


def test_malformed_file(tmp_path, capsys):
    path = tmp_path / 'config.yaml'
    path.write_text("elb: [unclosed\n")
    config.load_config(str(path))
    assert config.CONFIG == {}
    assert 'Error parsing' in capsys.readouterr().err


def test_empty_section_uses_defaults(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text("route53:\n")
    config.load_config(str(path))
    assert config.get_section('route53') == {'host': 'localhost', 'port': 0}
