# renovation_tracker/cli.py
from datetime import date

import click
from dotenv import load_dotenv

from renovation_tracker.ai import request_advice
from renovation_tracker.config import load_config
from renovation_tracker.core.models import (
    Category,
    Transaction,
    TransactionDraft,
    TransactionType,
    ValidationError,
    validate_draft,
)
from renovation_tracker.manual import load_manual_transactions
from renovation_tracker.repository import TransactionRepository
from renovation_tracker.stores import get_store
from renovation_tracker.summary import (
    aggregate_by_category,
    budget_utilization,
    compute_stats,
    is_over_budget,
    utilization_band,
)
from renovation_tracker.utils import (
    ALL_CATEGORIES,
    filter_transactions,
    format_currency,
    sort_for_display,
)

CATEGORY_CHOICES = [cat.value for cat in Category]
TYPE_CHOICES = [t.value for t in TransactionType]


class AppContext:
    def __init__(self, config):
        self.config = config
        self.repo = TransactionRepository(get_store(config), config['store']['key'])

    @property
    def total_budget(self):
        return self.config['total_budget']

    def money(self, amount):
        return format_currency(amount, self.config['currency_symbol'])


def _warn_if_not_persisted(repo):
    if not repo.last_persist_ok:
        click.echo("⚠️  Change applied but could not be saved to the store.", err=True)


@click.group()
@click.option(
    '--config', 'config_path',
    default='config.yaml',
    type=click.Path(dir_okay=False),
    help='Path to config.yaml (defaults are used if it does not exist)'
)
@click.option(
    '--env-file', 'env_file',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Optional .env file containing API tokens for AI providers'
)
@click.pass_context
def main(ctx, config_path, env_file):
    """
    Track expenses and bills against a fixed renovation budget, see how
    the spend breaks down by category, and ask an LLM for a short
    assessment of where the project stands.
    """
    if env_file:
        load_dotenv(env_file)
    try:
        ctx.obj = AppContext(load_config(config_path))
    except (OSError, ValueError, KeyError) as e:
        raise click.ClickException(f"Could not load configuration: {e}")


@main.command()
@click.option('--date', 'tx_date', default=lambda: date.today().isoformat(), show_default='today',
              help='ISO date of the payment (YYYY-MM-DD)')
@click.option('--description', required=True, help='What the money was spent on')
@click.option('--amount', required=True, type=float, help='Amount paid')
@click.option('--category', required=True, type=click.Choice(CATEGORY_CHOICES))
@click.option('--type', 'tx_type', default=TransactionType.EXPENSE.value,
              type=click.Choice(TYPE_CHOICES), show_default=True)
@click.option('--vendor', default=None, help='Vendor name (bills only)')
@click.option('--attachment', 'attachment_name', default=None, help='Name of the receipt/invoice file')
@click.pass_obj
def add(app, tx_date, description, amount, category, tx_type, vendor, attachment_name):
    """Record a new expense or bill."""
    draft = TransactionDraft(
        date=tx_date,
        description=description,
        amount=amount,
        category=category,
        type=tx_type,
        vendor=vendor,
        attachment_name=attachment_name,
    )
    try:
        tx = app.repo.create(draft)
    except ValidationError as e:
        raise click.ClickException(str(e))
    _warn_if_not_persisted(app.repo)
    click.echo(f"Added {tx.id}: {tx.description} ({app.money(tx.amount)})")


@main.command()
@click.argument('tx_id')
@click.option('--date', 'tx_date', default=None)
@click.option('--description', default=None)
@click.option('--amount', default=None, type=float)
@click.option('--category', default=None, type=click.Choice(CATEGORY_CHOICES))
@click.option('--type', 'tx_type', default=None, type=click.Choice(TYPE_CHOICES))
@click.option('--vendor', default=None)
@click.option('--attachment', 'attachment_name', default=None)
@click.pass_obj
def edit(app, tx_id, tx_date, description, amount, category, tx_type, vendor, attachment_name):
    """Change fields of an existing entry; the record is replaced as a whole."""
    current = app.repo.get(tx_id)
    if current is None:
        raise click.ClickException(f"No transaction with id {tx_id}")

    updated = Transaction(
        id=current.id,
        date=tx_date if tx_date is not None else current.date,
        description=description if description is not None else current.description,
        amount=amount if amount is not None else current.amount,
        category=category if category is not None else current.category,
        type=tx_type if tx_type is not None else current.type,
        vendor=vendor if vendor is not None else current.vendor,
        attachment_name=attachment_name if attachment_name is not None else current.attachment_name,
    )
    try:
        result = app.repo.replace(updated)
    except ValidationError as e:
        raise click.ClickException(str(e))
    if not result.applied:
        raise click.ClickException(f"No transaction with id {tx_id}")
    _warn_if_not_persisted(app.repo)
    click.echo(f"Updated {tx_id}.")


@main.command()
@click.argument('tx_id')
@click.option('--yes', is_flag=True, default=False, help='Do not ask for confirmation')
@click.pass_obj
def delete(app, tx_id, yes):
    """Remove an entry after confirmation."""
    current = app.repo.get(tx_id)
    if current is None:
        raise click.ClickException(f"No transaction with id {tx_id}")
    if not yes:
        click.confirm(
            f"Delete '{current.description}' ({app.money(current.amount)})?",
            abort=True,
        )
    result = app.repo.remove(tx_id)
    if not result.applied:
        raise click.ClickException(f"No transaction with id {tx_id}")
    _warn_if_not_persisted(app.repo)
    click.echo(f"Deleted {tx_id}.")


@main.command(name='list')
@click.option('--search', default=None, help='Match text in the description or vendor')
@click.option('--category', default=ALL_CATEGORIES,
              type=click.Choice([ALL_CATEGORIES] + CATEGORY_CHOICES), show_default=True)
@click.pass_obj
def list_cmd(app, search, category):
    """Show entries, newest date first."""
    txs = sort_for_display(filter_transactions(app.repo.list(), search, category))
    if not txs:
        click.echo("No transactions found.")
        return
    for tx in txs:
        label = tx.description
        if tx.vendor:
            label += f" [{tx.vendor}]"
        if tx.attachment_name:
            label += f" 📎 {tx.attachment_name}"
        click.echo(
            f"{tx.date}  {tx.category.value:<15} {tx.type.value:<8} "
            f"{app.money(tx.amount):>12}  {label}  ({tx.id})"
        )


@main.command()
@click.pass_obj
def stats(app):
    """Budget overview: totals, utilisation and spend per category."""
    txs = app.repo.list()
    s = compute_stats(txs, app.total_budget)
    pct = budget_utilization(s)
    _, message = utilization_band(pct)

    click.echo(f"Total Budget: {app.money(s.total_budget)}")
    click.echo(f"Total Spent:  {app.money(s.total_spent)}")
    label = "Over Budget: " if is_over_budget(s) else "Remaining:   "
    click.echo(f"{label} {app.money(s.remaining)}")
    click.echo(f"\nBudget utilisation: {pct}% used")
    click.echo(message)

    breakdown = aggregate_by_category(txs)
    if breakdown:
        click.echo("\nSpending by category:")
        for cat, total in breakdown.items():
            click.echo(f"  {cat.value:<15} {app.money(total):>12}")


@main.command()
@click.pass_obj
def advice(app):
    """Ask the configured LLM for a short budget assessment."""
    text = request_advice(
        app.repo.list(),
        app.total_budget,
        project_name=app.config['project_name'],
        currency_symbol=app.config['currency_symbol'],
        timeout=float(app.config['llm']['timeout']),
    )
    click.echo(text)


@main.command(name='import')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def import_cmd(app, path):
    """Bulk-add entries from a YAML file; nothing is added if any entry is invalid."""
    try:
        drafts = [validate_draft(d) for d in load_manual_transactions(path)]
    except ValueError as e:
        raise click.ClickException(f"Error loading manual transactions: {e}")
    for draft in reversed(drafts):
        app.repo.create(draft)
    _warn_if_not_persisted(app.repo)
    click.echo(f"Imported {len(drafts)} transaction(s).")
