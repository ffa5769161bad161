import re
from datetime import date

import yaml
from click.testing import CliRunner

from smartsave import database as db
from smartsave.cli import main as cli
from smartsave.core.models import Transaction


def write_statement(path):
    path.write_text(
        "date,description,amount,currency\n"
        "2025-05-01,Salary deposit,3000,EUR\n"
        "2025-05-03,Rent payment,\"-1,200.00\",EUR\n"
        "2025-05-05,Corner restaurant,-95,EUR\n"
        "2025-04-05,Corner restaurant,-40,EUR\n"
    )
    return path


def write_manual(path):
    path.write_text(
        """\
- date: 2025-05-06
  description: Farmers market grocery
  amount: -12.5
"""
    )
    return path


def write_config(tmp_path, **overrides):
    cfg = {
        'db_path': str(tmp_path / 'data' / 'smartsave.db'),
        'output_dir': str(tmp_path / 'exports'),
        'cache_path': str(tmp_path / 'cache.json'),
    }
    cfg.update(overrides)
    path = tmp_path / 'config.yaml'
    with open(path, 'w') as f:
        yaml.safe_dump(cfg, f)
    return path, cfg


def _invoke(cfg_path, *args):
    res = CliRunner().invoke(cli, ['--config', str(cfg_path), *args])
    assert res.exit_code == 0, res.output
    return res.output


def test_import_alerts_and_recommend(tmp_path):
    stmt = write_statement(tmp_path / 'may.csv')
    manual = write_manual(tmp_path / 'manual.yaml')
    cfg_path, cfg = write_config(tmp_path)

    out = _invoke(cfg_path, 'import', str(stmt), '--manual-file', str(manual))
    assert 'Stored 5 transaction(s)' in out

    txs = db.fetch_transactions(cfg['db_path'])
    assert {tx.category for tx in txs} == {'Income', 'Rent & Housing', 'Food & Dining'}

    _invoke(cfg_path, 'budget', 'add', 'Food & Dining', '100')
    out = _invoke(cfg_path, 'alerts', '--today', '2025-05-20')
    assert "Warning: You've exceeded your Food & Dining budget of 100.00!" in out

    out = _invoke(cfg_path, 'recommend', '--today', '2025-05-20')
    assert "1. You've exceeded your budget in: Food & Dining" in out

    out = _invoke(cfg_path, 'savings')
    assert 'Suggested monthly savings:' in out


def test_alert_report_from_config(tmp_path):
    cfg_path, cfg = write_config(tmp_path, budget_alert_report='highest')
    db.append_transactions(
        [Transaction(date(2025, 5, 2), 'Cafe', -85.0, category='Food & Dining')],
        cfg['db_path'],
    )
    db.create_budget(cfg['db_path'], 'Food & Dining', 100)

    out = _invoke(cfg_path, 'alerts', '--today', '2025-05-20')
    assert "Alert: You've used 85% of your Food & Dining budget this month." in out


def test_goal_deposit_flow(tmp_path):
    cfg_path, cfg = write_config(tmp_path)

    out = _invoke(cfg_path, 'goal', 'add', 'Emergency fund', '5000')
    goal_id = re.search(r'Created goal (\w+):', out).group(1)

    out = _invoke(cfg_path, 'goal', 'deposit', goal_id, '200', '--description', 'bonus')
    assert 'Emergency fund: 200.00/5000.00' in out
    out = _invoke(cfg_path, 'goal', 'deposit', goal_id, '300')
    assert 'Emergency fund: 500.00/5000.00' in out

    out = _invoke(cfg_path, 'goal', 'deposits', goal_id)
    assert out.splitlines()[1].endswith('200.00  bonus')

    res = CliRunner().invoke(cli, ['--config', str(cfg_path), 'goal', 'deposit', goal_id, '0'])
    assert res.exit_code != 0
    assert db.get_savings_goal(cfg['db_path'], goal_id).current_amount == 500


def test_offline_import_then_sync(tmp_path):
    stmt = write_statement(tmp_path / 'may.csv')
    cfg_path, cfg = write_config(tmp_path)

    out = _invoke(cfg_path, 'import', '--offline', str(stmt))
    assert 'Cached 4 transaction(s)' in out
    assert db.fetch_transactions(cfg['db_path']) == []

    out = _invoke(cfg_path, 'sync')
    assert 'Synced 4 transaction(s) and 0 savings goal(s).' in out
    assert len(db.fetch_transactions(cfg['db_path'])) == 4


def test_export_and_reset(tmp_path):
    stmt = write_statement(tmp_path / 'may.csv')
    cfg_path, cfg = write_config(tmp_path)
    _invoke(cfg_path, 'import', str(stmt))

    out = _invoke(cfg_path, 'export')
    assert out.count('Wrote ') == 3
    assert len(list((tmp_path / 'exports').glob('smartsave_*.csv'))) == 3

    _invoke(cfg_path, 'reset', '--yes')
    assert db.fetch_transactions(cfg['db_path']) == []


def test_import_reports_bad_file(tmp_path):
    bad = tmp_path / 'bad.csv'
    bad.write_text('when,what\n2025-01-01,x\n')
    cfg_path, _ = write_config(tmp_path)
    res = CliRunner().invoke(cli, ['--config', str(cfg_path), 'import', str(bad)])
    assert res.exit_code != 0
    assert "Missing required column 'date'" in res.output


def test_ask_uses_assistant(tmp_path, monkeypatch):
    cfg_path, _ = write_config(tmp_path)

    class DummyProvider:
        def generate(self, messages):
            return 'Spend less on takeout.'

    monkeypatch.setattr('smartsave.ai.get_provider_from_env', lambda: DummyProvider())
    out = _invoke(cfg_path, 'ask', 'Where can I save?')
    assert 'Spend less on takeout.' in out


def test_export_single_month(tmp_path):
    stmt = write_statement(tmp_path / 'may.csv')
    cfg_path, _ = write_config(tmp_path)
    _invoke(cfg_path, 'import', str(stmt))

    out = _invoke(cfg_path, 'export', '--month', '2025-04')
    tx_path = next(line[len('Wrote '):] for line in out.splitlines() if 'transactions' in line)
    with open(tx_path) as f:
        lines = f.read().splitlines()
    assert len(lines) == 2
    assert lines[1].startswith('2025-04-05,Corner restaurant,-40.0')

    res = CliRunner().invoke(cli, ['--config', str(cfg_path), 'export', '--month', 'April'])
    assert res.exit_code != 0
    assert 'YYYY-MM' in res.output


def test_ask_rejects_blank_question(tmp_path):
    cfg_path, _ = write_config(tmp_path)
    res = CliRunner().invoke(cli, ['--config', str(cfg_path), 'ask', '   '])
    assert res.exit_code == 1
    assert not isinstance(res.exception, ValueError)
    assert 'Missing question for the assistant' in res.output
