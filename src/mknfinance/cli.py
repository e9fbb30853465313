"""Flask CLI commands for the finance ledger."""

from __future__ import annotations

import click


def init_app(app) -> None:
    """Register CLI commands on the Flask app."""

    @app.cli.command("finance-balances")
    @click.option("--all", "include_inactive", is_flag=True, default=False, help="Include inactive accounts")
    def finance_balances(include_inactive: bool) -> None:
        """Print every account with its non-zero balances."""

        from .extensions import get_finance
        from .services.formatting import format_currency

        result = get_finance().accounts.get_accounts(is_active=None if include_inactive else True)
        if not result.success:
            raise click.ClickException(result.error or "Could not load accounts.")
        if not result.data:
            click.echo("No accounts found.")
            return
        for account in result.data:
            balances = ", ".join(
                format_currency(amount, code) for code, amount in account.balance_map().items() if amount
            )
            marker = "*" if account.is_default else " "
            click.echo(f"{marker} {account.id:>4} {account.name:<30} {balances or format_currency(0, account.currency)}")

    @app.cli.command("finance-rate")
    @click.argument("from_currency")
    @click.argument("to_currency")
    def finance_rate(from_currency: str, to_currency: str) -> None:
        """Look up the suggested rate for FROM_CURRENCY -> TO_CURRENCY."""

        from .extensions import get_finance
        from .services.exchange_rates import format_exchange_rate

        quote = get_finance().rates.fetch_exchange_rate(from_currency, to_currency)
        if quote.rate is None:
            raise click.ClickException(quote.error or "No rate available; enter it manually.")
        click.echo(f"{format_exchange_rate(quote.rate, from_currency.upper(), to_currency.upper())} ({quote.source})")

    @app.cli.command("finance-snapshot")
    @click.argument("base")
    def finance_snapshot(base: str) -> None:
        """Store the current rate table for BASE in the rate history."""

        from .extensions import get_finance

        result = get_finance().rates.save_snapshot(base)
        if not result.success:
            raise click.ClickException(result.error or "Snapshot failed.")
        click.echo(f"Snapshot {result.data.id} saved for {result.data.base} ({len(result.data.rates)} rates).")

    @app.cli.command("finance-overdue")
    @click.option(
        "--kind",
        type=click.Choice(["receivable", "payable"]),
        default=None,
        help="Only check receivables or payables",
    )
    def finance_overdue(kind: str | None) -> None:
        """Flag receivables and payables that are past their due date."""

        from .extensions import get_finance

        result = get_finance().receivables.check_overdue(kind)
        if not result.success:
            raise click.ClickException(result.error or "Overdue check failed.")
        for name, count in result.data.items():
            click.echo(f"{name}: {count} marked overdue")
