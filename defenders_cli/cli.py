"""Command-line interface for the defenders CLI."""

import threading
from dataclasses import dataclass, field
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from defenders_cli import __version__
from defenders_cli.azure_devops.client import AzureCliClient
from defenders_cli.azure_devops.urls import (
    build_results_url,
    parse_pipeline_url,
    parse_pull_request_url,
    pull_request_web_url,
    token_settings_url,
    work_item_web_url,
)
from defenders_cli.config import (
    ConfigStore,
    DefendersConfig,
    LoggingSettings,
    SettingsResolver,
    mask_pat,
)
from defenders_cli.core.exceptions import (
    DefendersError,
    InvocationError,
    ValidationError,
)
from defenders_cli.git.operations import GitOperations, branch_title
from defenders_cli.pipelines.monitor import (
    DEFAULT_INTERVAL_SECONDS,
    MonitorRequest,
    MonitorResult,
    PipelineMonitor,
)
from defenders_cli.pipelines.retry import RetryPolicy
from defenders_cli.pipelines.signals import cancel_on_signals
from defenders_cli.utils.logging import setup_logging
from defenders_cli.utils.process import CommandRunner

console = Console(highlight=False, soft_wrap=True)
err_console = Console(stderr=True, highlight=False, soft_wrap=True)

EXIT_CANCELLED = 130

PAT_REQUIRED_MESSAGE = (
    "PAT is required. Run 'defenders conf' or set ADO_PAT environment variable."
)


@dataclass
class AppContext:
    """Per-invocation state shared by all commands."""

    force: bool = False
    store: ConfigStore = field(default_factory=ConfigStore)
    runner: CommandRunner = field(default_factory=CommandRunner)
    repo_path: Path | None = None
    _resolver: SettingsResolver | None = field(default=None, init=False, repr=False)

    @property
    def resolver(self) -> SettingsResolver:
        if self._resolver is None:
            self._resolver = SettingsResolver(self.store)
        return self._resolver

    def client(self, pat: str | None = None) -> AzureCliClient:
        return AzureCliClient(self.runner, pat=pat)

    def require_pat(self, flag_value: str | None) -> str:
        pat = self.resolver.pat(flag_value)
        if not pat:
            raise ValidationError(PAT_REQUIRED_MESSAGE)
        return pat

    def confirm(self, message: str, default: bool = False) -> bool:
        """Ask for confirmation unless --force was given."""
        if self.force:
            return True
        return click.confirm(message, default=default)


class DefendersGroup(click.Group):
    """Root group that turns CLI errors into a message and exit code 1."""

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except ValidationError as e:
            err_console.print(f"Error: {escape(e.message)}")
            if e.help_text:
                click.echo(e.help_text)
            ctx.exit(1)
        except DefendersError as e:
            err_console.print(f"Error: {escape(str(e))}")
            ctx.exit(1)
        except click.UsageError as e:
            e.show()
            ctx.exit(1)


def _usage_error(ctx: click.Context, message: str) -> ValidationError:
    return ValidationError(message, help_text=ctx.get_help())


def print_config_table(config: DefendersConfig, title: str) -> None:
    """Print configuration values with the PAT masked."""
    table = Table(title=title, show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("PAT", mask_pat(config.pat))
    table.add_row("Organization", escape(config.organization))
    table.add_row("Project", escape(config.project))
    table.add_row("Team", escape(config.team))
    table.add_row("Area", escape(config.area))
    table.add_row("Assigned To", escape(config.assigned_to))

    console.print(table)


@click.group(cls=DefendersGroup)
@click.version_option(version=__version__)
@click.option("--force", "-f", is_flag=True, help="Skip interactive confirmations")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def main(ctx: click.Context, force: bool, verbose: bool):
    """Azure DevOps helpers on top of the az CLI.

    Run 'defenders conf' to set up your configuration, or set the ADO_PAT
    environment variable. Create a PAT at
    https://dev.azure.com/{org}/_usersSettings/tokens
    """
    app = ctx.ensure_object(AppContext)
    app.force = app.force or force

    log_settings = LoggingSettings()
    setup_logging(
        level="DEBUG" if verbose else log_settings.level,
        log_format=log_settings.format,
        log_file=log_settings.file,
        rich_console=log_settings.rich_console,
    )


# conf


@main.group(invoke_without_command=True)
@click.pass_context
def conf(ctx: click.Context):
    """Configure CLI settings (PAT, org, project, etc.).

    Without a subcommand, runs the interactive configuration wizard.

    \b
    Config file location:
      Linux/macOS: ~/.config/defenders/config.json
      Windows:     %APPDATA%\\defenders\\config.json
    """
    if ctx.invoked_subcommand is None:
        ctx.invoke(setup)


@conf.command()
@click.pass_obj
def setup(app: AppContext):
    """Interactive configuration wizard."""
    console.print(Panel.fit("Defenders CLI Configuration Wizard", style="bold blue"))

    existing = app.store.load()
    defaults = existing or DefendersConfig.defaults()
    if existing:
        console.print("Existing configuration found. Press Enter to keep current values.\n")
    else:
        console.print("No existing configuration. Setting up new config.\n")

    console.print("[bold]1. Personal Access Token (PAT)[/bold]")
    console.print("   Create at: https://dev.azure.com/<your-org>/_usersSettings/tokens")
    console.print("   Required scopes: Work Items (Read/Write), Code (Read/Write), Build (Read/Execute)")
    if defaults.pat:
        console.print(f"   Current: {mask_pat(defaults.pat)}")
    pat = click.prompt("   PAT Token", default=defaults.pat, show_default=False, hide_input=True)

    console.print("\n[bold]2. Azure DevOps Organization URL[/bold]")
    organization = click.prompt("   Organization URL", default=defaults.organization)

    console.print("\n[bold]3. Project Name[/bold]")
    project = click.prompt("   Project", default=defaults.project)

    console.print("\n[bold]4. Team Name[/bold]")
    team = click.prompt("   Team", default=defaults.team)

    console.print("\n[bold]5. Area Path (for work items)[/bold]")
    area = click.prompt("   Area Path", default=defaults.area)

    console.print("\n[bold]6. Default Assigned To (email for work items)[/bold]")
    if not defaults.assigned_to:
        console.print("   (optional - leave empty to skip)")
    assigned_to = click.prompt(
        "   Assigned To",
        default=defaults.assigned_to,
        show_default=bool(defaults.assigned_to),
    )

    config = DefendersConfig(
        pat=pat.strip(),
        organization=organization.strip(),
        project=project.strip(),
        team=team.strip(),
        area=area.strip(),
        assigned_to=assigned_to.strip(),
    )

    console.print()
    print_config_table(config, "Configuration Summary")

    if not app.confirm("Save this configuration?", default=True):
        console.print("Configuration cancelled.")
        return

    path = app.store.save(config)
    console.print(f"\n[green][OK][/green] Configuration saved to: {escape(str(path))}")
    console.print("\nYou can now use defenders CLI commands!")


@conf.command()
@click.pass_obj
def show(app: AppContext):
    """Show current configuration."""
    config = app.store.load()
    if config is None:
        console.print("No configuration file found.")
        console.print("Run 'defenders conf' to create one.")
        return

    print_config_table(config, "Current Configuration")
    console.print(f"\nConfig file: {escape(str(app.store.path))}")


@conf.command()
@click.pass_obj
def path(app: AppContext):
    """Show configuration file path."""
    console.print(escape(str(app.store.path)))
    if app.store.exists():
        console.print("(file exists)")
    else:
        console.print("(file does not exist)")


@conf.command()
@click.pass_obj
def reset(app: AppContext):
    """Reset configuration to defaults."""
    if not app.store.exists():
        console.print("No configuration file exists.")
        return

    if not app.confirm("Are you sure you want to reset configuration?"):
        console.print("Cancelled.")
        return

    app.store.reset()
    console.print("Configuration reset to defaults.")


# get-token


@main.command("get-token")
@click.pass_obj
def get_token(app: AppContext):
    """Open browser to create a PAT token with required permissions.

    \b
    Required permissions:
      - Work Items: Read & Write (for 'cado')
      - Code: Read & Write (for 'prme' and 'pr')
      - Build: Read & Execute (for 'release')
    """
    url = token_settings_url(app.resolver.organization())

    console.print(Panel.fit("Create Azure DevOps PAT Token", style="bold blue"))
    console.print("Opening browser to create a new PAT token...\n")
    console.print(f"URL: {escape(url)}\n")

    table = Table(title="Required Permissions", show_header=True)
    table.add_column("Scope", style="cyan")
    table.add_column("Access", style="white")
    table.add_row("Work Items", "Read & Write")
    table.add_row("Code", "Read & Write")
    table.add_row("Build", "Read & Execute")
    console.print(table)

    console.print("\nAfter creating the token, run:")
    console.print("  defenders conf")
    console.print("\nto save it to your configuration.\n")

    if click.launch(url) != 0:
        err_console.print("Could not open browser.")
        console.print("Please open the URL manually in your browser.")


# cado


@main.command()
@click.option("--title", help="(required) Title of the Feature work item")
@click.option("--parent", help="Parent work item ID to link")
@click.option("--assigned-to", "assigned_to", help="Override assigned-to from config")
@click.pass_context
def cado(ctx: click.Context, title: str | None, parent: str | None, assigned_to: str | None):
    """Create ADO Feature work item with parent link and current iteration.

    Uses configuration from 'defenders conf' for org, project, team, and area.
    """
    if not title:
        raise _usage_error(ctx, "--title is required")

    app: AppContext = ctx.obj
    resolver = app.resolver
    org = resolver.organization()
    project = resolver.project()
    team = resolver.team()
    area = resolver.area()
    assignee = resolver.assigned_to(assigned_to)
    client = app.client(resolver.pat())

    console.print(f"Creating Feature: {escape(title)}")
    if parent:
        console.print(f"Parent: {escape(parent)}")

    with console.status("Looking up current iteration..."):
        iteration = client.current_iteration(org, project, team)
    console.print(f"Iteration: {escape(iteration)}")

    with console.status("Creating work item..."):
        work_item_id = client.create_work_item(
            org,
            project,
            title=title,
            iteration=iteration,
            area=area,
            assigned_to=assignee or None,
        )

    if parent:
        try:
            client.add_parent_link(org, work_item_id, parent)
        except InvocationError as e:
            err_console.print(f"Warning: Failed to add parent link: {escape((e.stderr or '').strip())}")

    console.print(work_item_web_url(org, project, work_item_id))


# prme


@main.command()
@click.option("--work-item", "-i", "work_item", help="Work item ID to link to the PR")
@click.option("--title", "-t", help="Custom PR title (default: branch name after last /)")
@click.pass_obj
def prme(app: AppContext, work_item: str | None, title: str | None):
    """Create PR from current branch to default branch."""
    git_ops = GitOperations(app.repo_path)
    branch = git_ops.get_current_branch()
    default_branch = git_ops.get_default_branch()
    title = title or branch_title(branch)

    console.print(f"Creating PR: {escape(branch)} -> {escape(default_branch)}")
    console.print(f"Title: {escape(title)}")
    if work_item:
        console.print(f"Work Item: {escape(work_item)}")

    client = app.client(app.resolver.pat())
    with console.status("Creating pull request..."):
        pull_request = client.create_pull_request(
            branch,
            default_branch,
            title,
            work_items=[work_item] if work_item else None,
        )

    console.print(
        pull_request_web_url(
            app.resolver.organization(),
            app.resolver.project(),
            pull_request.repository.name,
            pull_request.pull_request_id,
        )
    )


# release


@main.group()
def release():
    """Pipeline operations (run, monitor-trigger).

    \b
    URL formats:
      wait-for-build URL: https://dev.azure.com/org/proj/_build/results?buildId=123
      definition URL:     https://dev.azure.com/org/proj/_build?definitionId=456
    """


@release.command("run")
@click.argument("pipeline_url", required=False)
@click.option("--token", "-t", help="Personal Access Token (overrides config/env)")
@click.pass_context
def release_run(ctx: click.Context, pipeline_url: str | None, token: str | None):
    """Run an Azure DevOps pipeline from its definition URL."""
    if not pipeline_url:
        raise _usage_error(ctx, "pipeline URL is required")

    app: AppContext = ctx.obj
    pat = app.require_pat(token)

    try:
        pipeline = parse_pipeline_url(pipeline_url)
    except ValidationError as e:
        raise ValidationError(f"Error parsing URL: {e.message}") from e
    definition_id = pipeline.definition_id

    console.print(f"Triggering pipeline: {escape(pipeline_url)}")
    console.print(f"Project: {escape(pipeline.project)}, Definition ID: {escape(definition_id)}")

    run = app.client(pat).run_pipeline(pipeline.org_url, pipeline.project, definition_id)

    console.print("\n[green]Successfully triggered pipeline![/green]")
    console.print(f"Build ID: {run.id}")
    console.print(f"URL: {escape(build_results_url(pipeline.org_url, pipeline.project, run.id))}")


@release.command("monitor-trigger")
@click.argument("wait_url", required=False)
@click.argument("trigger_url", required=False)
@click.option(
    "--interval",
    "-i",
    default=DEFAULT_INTERVAL_SECONDS,
    type=int,
    show_default=True,
    help="Check interval in seconds",
)
@click.option(
    "--max-retries",
    type=click.IntRange(min=1),
    default=None,
    help="Give up after this many consecutive failed status checks (default: retry forever)",
)
@click.option(
    "--deadline",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Give up when status checks keep failing for this many seconds",
)
@click.option("--token", "-t", help="Personal Access Token (overrides config/env)")
@click.pass_context
def release_monitor_trigger(
    ctx: click.Context,
    wait_url: str | None,
    trigger_url: str | None,
    interval: int,
    max_retries: int | None,
    deadline: float | None,
    token: str | None,
):
    """Monitor a pipeline run and trigger another pipeline when it succeeds.

    WAIT_URL is the build results URL to wait for; TRIGGER_URL is the
    definition URL of the pipeline to run afterwards.
    """
    if not wait_url or not trigger_url:
        raise _usage_error(ctx, "both a wait URL and a trigger URL are required")

    app: AppContext = ctx.obj
    pat = app.require_pat(token)

    if interval <= 0:
        interval = DEFAULT_INTERVAL_SECONDS

    request = MonitorRequest.from_urls(wait_url, trigger_url, interval_seconds=interval)
    policy = RetryPolicy(max_attempts=max_retries, deadline_seconds=deadline)

    console.print("Starting pipeline monitor...")
    console.print(f"Monitoring: {escape(wait_url)}")
    console.print(f"Will trigger: {escape(trigger_url)}")
    console.print(f"Check interval: {interval} seconds\n")

    cancel_event = threading.Event()
    monitor = PipelineMonitor(
        app.client(pat),
        request,
        retry_policy=policy,
        cancel_event=cancel_event,
        report=lambda line: console.print(escape(line)),
    )
    with cancel_on_signals(cancel_event):
        outcome = monitor.run()

    if outcome.result is MonitorResult.CANCELLED:
        err_console.print(f"Monitoring of pipeline {request.wait_build_id} cancelled.")
        ctx.exit(EXIT_CANCELLED)

    if outcome.result is MonitorResult.FAILED:
        err_console.print(
            f"Pipeline {request.wait_build_id} failed with result: {outcome.build_result.value}"
        )
        ctx.exit(1)

    console.print(f"[green]Successfully triggered pipeline {outcome.new_build_id}[/green]")
    console.print(f"URL: {escape(outcome.new_build_url or '')}")


# pr


@main.command()
@click.argument("pr_url", required=False)
@click.option("--approve", is_flag=True, help="Approve the Pull Request")
@click.option("--reset", "reset_vote", is_flag=True, help="Reset your vote on the Pull Request")
@click.option(
    "--token",
    "-t",
    help="Personal Access Token (overrides config/env - use another user's PAT)",
)
@click.pass_context
def pr(ctx: click.Context, pr_url: str | None, approve: bool, reset_vote: bool, token: str | None):
    """Approve or reset your vote on a Pull Request.

    PR_URL: Azure DevOps Pull Request URL
    """
    if approve == reset_vote:
        raise _usage_error(ctx, "You must specify either --approve or --reset (but not both)")
    if not pr_url:
        raise _usage_error(ctx, "PR URL is required")

    app: AppContext = ctx.obj
    pat = app.require_pat(token)

    try:
        target = parse_pull_request_url(pr_url)
    except ValidationError as e:
        raise ValidationError(f"Error parsing PR URL: {e.message}") from e

    vote, action = ("approve", "approved") if approve else ("reset", "vote reset")

    console.print(f"Processing PR #{target.pull_request_id}...")
    console.print(f"Organization: {escape(target.org_url)}")
    console.print(f"Project: {escape(target.project)}")
    console.print(f"Repository: {escape(target.repository)}")
    console.print(f"Action: {action}")

    app.client(pat).set_pull_request_vote(target.org_url, target.pull_request_id, vote)

    console.print(f"[green][OK][/green] PR #{target.pull_request_id} {action} successfully!")
    console.print(f"  Repository: {escape(target.repository)}")
    console.print(f"  Project: {escape(target.project)}")


if __name__ == "__main__":
    main()
