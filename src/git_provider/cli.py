"""
Command-line interface for the git provider adapter.
"""
import asyncio
import sys

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import print as rprint

from git_provider.config import get_settings
from git_provider.core import (
    GitProviderError,
    InMemoryCredentialStore,
    OAuthCredential,
)
from git_provider.core.models import now_ms
from git_provider.adapters import AdapterFactory, PlatformType
from git_provider.utils import get_logger

console = Console()
logger = get_logger(__name__)

CLI_TENANT = "cli"


def _token_options(func):
    func = click.option(
        "--refresh-token",
        envvar="BITBUCKET_REFRESH_TOKEN",
        default="",
        help="Refresh token used when the access token is rejected",
    )(func)
    func = click.option(
        "--access-token",
        envvar="BITBUCKET_ACCESS_TOKEN",
        required=True,
        help="OAuth access token",
    )(func)
    return func


def _adapter(access_token: str = None, refresh_token: str = ""):
    store = InMemoryCredentialStore()
    credential = None
    if access_token:
        # Assume the token is fresh; a rejected token triggers a refresh
        credential = OAuthCredential(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=now_ms() + 3600 * 1000,
        )
    return AdapterFactory.create_adapter(
        PlatformType.BITBUCKET,
        tenant_id=CLI_TENANT,
        credential_store=store,
        credential=credential,
    )


def _run(coro_factory, access_token: str = None, refresh_token: str = ""):
    """Run one adapter coroutine and exit non-zero on provider errors."""

    async def _main():
        async with _adapter(access_token, refresh_token) as adapter:
            return await coro_factory(adapter)

    try:
        return asyncio.run(_main())
    except GitProviderError as e:
        rprint(f"[red]Error: {e.message}[/red]")
        sys.exit(1)


@click.group()
@click.version_option(version="0.1.0")
@click.option('--debug', is_flag=True, help='Enable debug mode')
def main(debug):
    """Canonical git provider adapter CLI."""
    if debug:
        import logging
        logging.getLogger("git_provider").setLevel(logging.DEBUG)


@main.command()
@click.option(
    "--config",
    "-c",
    help="Path to configuration file",
    type=click.Path(exists=True)
)
@click.option(
    "--validate",
    "-v",
    is_flag=True,
    help="Validate configuration"
)
def config(config: str, validate: bool):
    """Show and validate configuration."""
    settings = get_settings(config, reload=config is not None)

    if validate:
        errors = settings.validate()
        if errors:
            rprint("[red]Configuration validation failed:[/red]")
            for error in errors:
                rprint(f"  • {error}")
            sys.exit(1)
        rprint("[green]Configuration is valid![/green]")
        return

    rprint(Panel.fit(
        "[bold blue]Git Provider Adapter Configuration[/bold blue]",
        border_style="blue"
    ))

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Setting", style="cyan", width=40)
    table.add_column("Value", style="green")

    for section_name, section_data in settings.to_dict().items():
        for key, value in section_data.items():
            table.add_row(f"{section_name}.{key}", str(value))

    console.print(table)


@main.command("install-url")
@click.argument("tenant_id")
def install_url(tenant_id: str):
    """Print the OAuth authorize URL for a tenant."""
    async def _build(adapter):
        return adapter.get_installation_url(tenant_id)

    click.echo(_run(_build))


@main.command("exchange-code")
@click.argument("code")
def exchange_code(code: str):
    """Exchange an authorization code for tokens."""
    credential = _run(lambda adapter: adapter.exchange_code(code))

    table = Table(show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("access_token", credential.access_token)
    table.add_row("refresh_token", credential.refresh_token)
    table.add_row("expires_at", str(credential.expires_at))
    table.add_row("scopes", " ".join(credential.scopes))
    console.print(table)


@main.command()
@_token_options
@click.option("--cursor", default=None, help="next/previous value of an earlier page")
def groups(access_token: str, refresh_token: str, cursor: str):
    """List workspaces the user belongs to."""
    result = _run(lambda adapter: adapter.list_groups(cursor), access_token, refresh_token)

    table = Table(title=f"Workspaces (total: {result.total})", show_header=True, header_style="bold magenta")
    table.add_column("Slug", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Id")
    for group in result.groups:
        table.add_row(group.slug, group.name, group.id)
    console.print(table)

    if result.next:
        rprint(f"[dim]next: {result.next}[/dim]")


@main.command()
@_token_options
@click.argument("group")
@click.option("--page", default=1, show_default=True)
@click.option("--limit", default=None, type=int)
def repos(access_token: str, refresh_token: str, group: str, page: int, limit: int):
    """List repositories of a workspace."""
    result = _run(
        lambda adapter: adapter.list_repositories(group, page=page, limit=limit),
        access_token,
        refresh_token,
    )

    table = Table(
        title=f"{group} (page {result.page.page}, total: {result.total})",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("Repository", style="cyan")
    table.add_column("Default branch", style="green")
    table.add_column("Private")
    for repo in result.repos:
        table.add_row(repo.full_name, repo.default_branch, "yes" if repo.private else "no")
    console.print(table)


@main.command("file")
@_token_options
@click.argument("group")
@click.argument("repo")
@click.argument("path")
@click.option("--ref", default=None, help="Branch, tag or commit (default branch if omitted)")
def show_file(access_token: str, refresh_token: str, group: str, repo: str, path: str, ref: str):
    """Print a file from a repository."""
    git_file = _run(
        lambda adapter: adapter.get_file(group, repo, path, ref=ref),
        access_token,
        refresh_token,
    )
    if git_file is None:
        rprint(f"[yellow]{path} does not exist[/yellow]")
        sys.exit(1)

    rprint(Panel.fit(f"[bold blue]{git_file.path}[/bold blue]\n{git_file.html_url}", border_style="blue"))
    click.echo(git_file.content)


@main.command()
@_token_options
@click.argument("group")
@click.argument("repo")
@click.argument("name")
def branch(access_token: str, refresh_token: str, group: str, repo: str, name: str):
    """Show the commit a branch points at."""
    found = _run(
        lambda adapter: adapter.get_branch(group, repo, name),
        access_token,
        refresh_token,
    )
    if found is None:
        rprint(f"[yellow]Branch {name} does not exist[/yellow]")
        sys.exit(1)
    rprint(f"[cyan]{found.name}[/cyan] -> [green]{found.sha}[/green]")


if __name__ == '__main__':
    main()
