# smartsave/cli.py
import logging
import os

import click
from dotenv import load_dotenv

from smartsave import database as db
from smartsave.ai import FinanceAssistant
from smartsave.cache import LocalCache
from smartsave.config import load_config
from smartsave.core.aggregator import filter_by_month
from smartsave.core.budgets import check_budgets
from smartsave.core.recommendations import get_spending_recommendations
from smartsave.core.savings import generate_savings_recommendations, suggest_monthly_savings_amount
from smartsave.loaders import get_loader
from smartsave.manual import load_manual_transactions
from smartsave.outputs.csv_output import CSVOutput

logger = logging.getLogger(__name__)

_DATE = click.DateTime(formats=['%Y-%m-%d'])


def _today(value):
    return value.date() if value else None


@click.group()
@click.option(
    '--config', 'config_path',
    default='config.yaml',
    type=click.Path(dir_okay=False),
    help='Path to config.yaml (defaults apply when it does not exist)'
)
@click.option(
    '--db', 'db_path',
    default=None,
    type=click.Path(dir_okay=False),
    help='SQLite database file (overrides config)'
)
@click.option(
    '--env-file', 'env_file',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Optional .env file containing API tokens for AI providers'
)
@click.option(
    '--log-level',
    default=None,
    help='Logging level (default: $SMARTSAVE_LOG_LEVEL or WARNING)'
)
@click.pass_context
def main(ctx, config_path, db_path, env_file, log_level):
    """
    Import transaction CSVs, track budgets and savings goals, and get
    spending recommendations.
    """
    if env_file:
        load_dotenv(env_file)
    level = (log_level or os.getenv('SMARTSAVE_LOG_LEVEL', 'WARNING')).upper()
    logging.basicConfig(level=level)

    try:
        cfg = load_config(config_path)
    except ValueError as e:
        raise click.ClickException(str(e))
    ctx.obj = {'config': cfg, 'db_path': db_path or cfg['db_path']}


@main.command('import')
@click.argument('files', nargs=-1, type=click.Path(exists=True, dir_okay=False))
@click.option('--loader', 'loader_name', default='csv', help='Loader name from config')
@click.option(
    '--manual-file', 'manual_file',
    default=None,
    type=click.Path(exists=True),
    help='YAML file of manual transactions (overrides config if provided)'
)
@click.option('--offline', is_flag=True, default=False,
              help='Keep the transactions in the local cache instead of the database')
@click.pass_obj
def import_cmd(obj, files, loader_name, manual_file, offline):
    """Load CSV statements (and manual entries) and store them."""
    cfg = obj['config']
    if loader_name not in cfg['loaders']:
        raise click.ClickException(f"Unknown loader '{loader_name}'")
    loader = get_loader(loader_name, cfg)

    all_txs = []
    for path in files:
        try:
            all_txs.extend(loader.load(path))
        except Exception as e:
            raise click.ClickException(f"Could not parse {path}: {e}")

    manual_path = manual_file or cfg.get('manual_transactions_file')
    if manual_path:
        try:
            all_txs.extend(load_manual_transactions(manual_path, cfg.get('categories') or None))
        except Exception as e:
            click.echo(f"Error loading manual transactions: {e}", err=True)

    if offline:
        cache = LocalCache(cfg['cache_path'])
        cache.save_transactions(cache.load_transactions() + all_txs)
        click.echo(f"Cached {len(all_txs)} transaction(s) in {cfg['cache_path']}.")
        return

    try:
        stored = db.append_transactions(all_txs, obj['db_path'])
    except ValueError as e:
        raise click.ClickException(str(e))
    click.echo(f"Stored {stored} transaction(s) in {obj['db_path']}.")


@main.command('sync')
@click.pass_obj
def sync_cmd(obj):
    """Push cached transactions and goals into the database."""
    result = LocalCache(obj['config']['cache_path']).sync(obj['db_path'])
    click.echo(
        f"Synced {result['transactions']} transaction(s) and "
        f"{result['savings_goals']} savings goal(s)."
    )


@main.command('alerts')
@click.option('--today', type=_DATE, default=None, help='Evaluate as of this date')
@click.option('--report', type=click.Choice(['lowest', 'highest']), default=None,
              help='Which crossed threshold to report')
@click.pass_obj
def alerts_cmd(obj, today, report):
    """Show budget threshold alerts for the current month."""
    cfg = obj['config']
    alerts = check_budgets(
        db.list_budgets(obj['db_path']),
        db.fetch_transactions(obj['db_path']),
        thresholds=cfg['budget_thresholds'],
        today=_today(today),
        report=report or cfg['budget_alert_report'],
    )
    if not alerts:
        click.echo("No budget alerts.")
    for alert in alerts:
        click.echo(alert.message)


@main.command('recommend')
@click.option('--today', type=_DATE, default=None, help='Evaluate as of this date')
@click.pass_obj
def recommend_cmd(obj, today):
    """Print spending recommendations."""
    recs = get_spending_recommendations(
        db.fetch_transactions(obj['db_path']),
        db.list_budgets(obj['db_path']),
        today=_today(today),
    )
    for idx, rec in enumerate(recs, 1):
        click.echo(f"{idx}. {rec}")


@main.command('savings')
@click.pass_obj
def savings_cmd(obj):
    """Suggest a monthly savings amount and category cuts."""
    txs = db.fetch_transactions(obj['db_path'])
    click.echo(f"Suggested monthly savings: {suggest_monthly_savings_amount(txs):.2f}")
    for rec in generate_savings_recommendations(txs):
        click.echo(
            f"- {rec.category}: cut {rec.suggested_reduction:.0f}% of "
            f"{rec.current_spending:.2f}/month to save {rec.potential_savings:.2f}. "
            f"{rec.description}"
        )


@main.group('budget')
def budget_group():
    """Manage budgets."""


@budget_group.command('add')
@click.argument('category')
@click.argument('amount', type=float)
@click.option('--period', type=click.Choice(list(db.BUDGET_PERIODS)), default='monthly')
@click.pass_obj
def budget_add(obj, category, amount, period):
    budget = db.create_budget(obj['db_path'], category, amount, period)
    click.echo(f"Created budget {budget.id} for {budget.category}: {budget.amount:.2f} {budget.period}")


@budget_group.command('list')
@click.pass_obj
def budget_list(obj):
    for b in db.list_budgets(obj['db_path']):
        click.echo(f"{b.id}  {b.category}  {b.amount:.2f}  {b.period}")


@budget_group.command('delete')
@click.argument('budget_id')
@click.pass_obj
def budget_delete(obj, budget_id):
    if not db.delete_budget(obj['db_path'], budget_id):
        raise click.ClickException("Budget not found")
    click.echo("Budget deleted.")


@main.group('goal')
def goal_group():
    """Manage savings goals and deposits."""


@goal_group.command('add')
@click.argument('name')
@click.argument('target_amount', type=float)
@click.option('--target-date', type=_DATE, default=None)
@click.pass_obj
def goal_add(obj, name, target_amount, target_date):
    goal = db.create_savings_goal(obj['db_path'], name, target_amount, target_date=_today(target_date))
    click.echo(f"Created goal {goal.id}: {goal.name} ({goal.target_amount:.2f})")


@goal_group.command('list')
@click.pass_obj
def goal_list(obj):
    for g in db.list_savings_goals(obj['db_path']):
        click.echo(
            f"{g.id}  {g.name}  {g.current_amount:.2f}/{g.target_amount:.2f} "
            f"({g.progress:.1f}%)"
        )


@goal_group.command('deposit')
@click.argument('goal_id')
@click.argument('amount', type=float)
@click.option('--description', default='')
@click.pass_obj
def goal_deposit(obj, goal_id, amount, description):
    try:
        goal = db.add_deposit(obj['db_path'], goal_id, amount, description)
    except ValueError as e:
        raise click.ClickException(str(e))
    if goal is None:
        raise click.ClickException("Savings goal not found")
    click.echo(f"{goal.name}: {goal.current_amount:.2f}/{goal.target_amount:.2f}")


@goal_group.command('deposits')
@click.argument('goal_id', required=False)
@click.option('--limit', type=int, default=10)
@click.pass_obj
def goal_deposits(obj, goal_id, limit):
    for d in db.list_deposits(obj['db_path'], goal_id, limit):
        click.echo(f"{d.created_at}  {d.amount:.2f}  {d.description}")


@main.command('export')
@click.option('--output-dir', default=None, type=click.Path(file_okay=False))
@click.option('--month', default=None, help='Only export transactions from this month (YYYY-MM)')
@click.pass_obj
def export_cmd(obj, output_dir, month):
    """Export transactions, goals and savings recommendations to CSV."""
    cfg = dict(obj['config'])
    if output_dir:
        cfg['output_dir'] = output_dir
    out = CSVOutput(cfg)
    txs = db.fetch_transactions(obj['db_path'])
    exported = txs
    if month:
        try:
            exported = filter_by_month(txs, month)
        except ValueError as e:
            raise click.ClickException(str(e))
    paths = [
        out.export_transactions(exported),
        out.export_savings_goals(db.list_savings_goals(obj['db_path'])),
        out.export_recommendations(generate_savings_recommendations(txs)),
    ]
    for path in paths:
        click.echo(f"Wrote {path}")


@main.command('ask')
@click.argument('question')
@click.pass_obj
def ask_cmd(obj, question):
    """Ask the finance assistant a question about your data."""
    path = obj['db_path']
    try:
        answer = FinanceAssistant().ask(
            question,
            db.fetch_transactions(path),
            db.list_budgets(path),
            db.list_savings_goals(path),
        )
    except ValueError as e:
        raise click.ClickException(str(e))
    click.echo(answer)


@main.command('reset')
@click.confirmation_option(prompt='Delete all stored data?')
@click.pass_obj
def reset_cmd(obj):
    db.reset_data(obj['db_path'])
    click.echo("All data cleared.")
