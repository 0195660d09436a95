"""
Tests for app-level wiring: environment loading and log output.
"""
import json
import logging
import os
import pathlib
import subprocess
import sys

from tokengate import json_formatter

ROOT = pathlib.Path(__file__).resolve().parents[1]

PRINT_CONFIG = (
    "from tokengate import create_app\n"
    "app = create_app()\n"
    "print(app.config['ADMIN_PASSWORD'], app.config['IP_SALT'], app.config['SITE_URL'])\n"
)


class TestDotenv:
    """Settings in a .env file in the working directory reach the app config."""

    def test_env_file_is_loaded_before_config(self, tmp_path):
        (tmp_path / '.env').write_text(
            'ADMIN_PASSWORD=from-dotenv\n'
            'IP_SALT=dotenv-salt\n'
            'SITE_URL=https://dotenv.test/\n'
            'DATABASE_URL=sqlite://\n'
        )
        env = {k: v for k, v in os.environ.items()
               if k not in ('ADMIN_PASSWORD', 'IP_SALT', 'SITE_URL', 'DATABASE_URL', 'STORE_BACKEND')}
        env['PYTHONPATH'] = os.pathsep.join(p for p in (str(ROOT), env.get('PYTHONPATH')) if p)

        result = subprocess.run(
            [sys.executable, '-c', PRINT_CONFIG],
            cwd=tmp_path, env=env, capture_output=True, text=True, timeout=60,
        )

        assert result.returncode == 0, result.stderr
        assert result.stdout.split() == ['from-dotenv', 'dotenv-salt', 'https://dotenv.test']


class TestJsonLogging:

    def _format(self, msg, *args):
        record = logging.LogRecord('tokengate.services.admin', logging.INFO, __file__, 1, msg, args, None)
        return json.loads(json_formatter().format(record))

    def test_quotes_in_message_stay_valid_json(self):
        campaign = 'Bob\'s "launch"'
        line = self._format('issued token %s for campaign %r', 'Ab3dE6gH', campaign)
        assert line['msg'] == f'issued token Ab3dE6gH for campaign {campaign!r}'
        assert line['level'] == 'INFO'
        assert line['name'] == 'tokengate.services.admin'
        assert 'ts' in line
