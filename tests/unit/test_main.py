"""
Test Command Line Entry Point

Runs the CLI against the simulated robot with a zero-latency config.
"""

import json
import logging

import pytest
import yaml

from botanybot.main import build_parser, main

CONFIG = {
    'system': {'log_level': 'WARNING', 'log_to_file': False, 'simulation_mode': True},
    'gateway': {
        'type': 'simulated',
        'timeout': 5.0,
        'probe_timeout': 15.0,
        'simulation': {'time_scale': 0.0, 'sun_azimuth': 135, 'seed': 11}
    },
    'advisory': {'api_key': '', 'endpoint': '', 'model': 'soil-advisor', 'timeout': 5.0},
    'robot': {'platform_height': 50, 'rotation_angle': 0, 'shutter_level': 20,
              'sun_azimuth': 135, 'shutter_step': 10}
}


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    for name in ('BOTANYBOT_LOG_LEVEL', 'BOTANYBOT_SIMULATION', 'BOTANYBOT_GATEWAY_URL',
                 'BOTANYBOT_ADVISORY_API_KEY', 'API_KEY'):
        monkeypatch.delenv(name, raising=False)
    path = tmp_path / "botanybot.yaml"
    path.write_text(yaml.safe_dump(CONFIG), encoding='utf-8')
    return path


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def run_cli(capsys, *argv):
    code = main(list(argv))
    return code, json.loads(capsys.readouterr().out)


class TestCommandLine:
    """Test CLI commands"""

    def test_status(self, config_file, capsys):
        code, state = run_cli(capsys, '--config', str(config_file), '--no-file-log', 'status')
        assert code == 0
        assert state['platform_height'] == 50
        assert state['connection'] == 'connected'
        assert state['scan_state'] == 'IDLE'

    def test_rotate(self, config_file, capsys):
        code, state = run_cli(capsys, '--config', str(config_file), 'rotate', '270')
        assert code == 0
        assert state['rotation_angle'] == 270

    def test_shutter_steps(self, config_file, capsys):
        code, state = run_cli(capsys, '--config', str(config_file), 'shutter', 'up', '--steps', '3')
        assert code == 0
        assert state['shutter_level'] == 0

    def test_scan(self, config_file, capsys):
        code, state = run_cli(capsys, '--config', str(config_file), 'scan')
        assert code == 0
        assert state['scan_state'] == 'DONE'
        assert state['last_metrics'] is not None
        assert state['advisory_text'].startswith("Soil status:")

    def test_advise_local(self, config_file, capsys):
        code, result = run_cli(capsys, '--config', str(config_file), 'advise',
                               '--moisture', '20', '--ph', '6.5', '--temperature', '22',
                               '--light', '1500')
        assert code == 0
        assert result['strategy'] == 'local'
        assert "briefly irrigate" in result['advisory']

    def test_out_of_range_height(self, config_file, capsys):
        assert main(['--config', str(config_file), 'height', '150']) == 2
        assert "out of range" in capsys.readouterr().err

    def test_missing_config(self, tmp_path, capsys):
        assert main(['--config', str(tmp_path / "nope.yaml"), 'status']) == 1

    def test_parser_requires_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])
