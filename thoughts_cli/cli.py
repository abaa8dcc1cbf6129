"""Thoughts CLI - link a separate notes repository into your code repositories."""

import json
import os
import shlex
import subprocess
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import questionary
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__, git
from .config import (
    DEFAULT_GLOBAL_DIR,
    DEFAULT_REPOS_DIR,
    DEFAULT_THOUGHTS_REPO,
    THOUGHTS_DIR,
    ProfileConfig,
    ThoughtsConfig,
    find_config_path,
    load_config_file,
    save_thoughts_config,
    validate_dir_name,
)
from .errors import ConfigNotFound, ProfileExists, ProfileInUse, ProfileNotFound, ThoughtsError
from .hooks import HookState, get_hook_states, setup_git_hooks
from .paths import contract_home, get_repo_name_from_path, sanitize_directory_name
from .profiles import (
    create_profile,
    delete_profile,
    get_profile,
    get_repo_mapping,
    remove_repo_mapping,
    repos_using_profile,
    require_thoughts_config,
    resolve_profile_for_repo,
    set_repo_mapping,
    validate_profile_name,
    validate_user_name,
)
from .repository import create_thoughts_directory_structure, ensure_thoughts_repo_exists
from .symlinks import get_thoughts_dir, link_thoughts_directory, unlink_thoughts_directory
from .sync import SyncResult, sync_thoughts
from .templates import generate_claude_md

app = typer.Typer(
    name="thoughts",
    help="Manage developer thoughts and notes alongside your code repositories",
    no_args_is_help=True,
)
profile_app = typer.Typer(help="Manage thoughts profiles", no_args_is_help=True)
app.add_typer(profile_app, name="profile")

console = Console()

CONFIG_FILE_OPTION = typer.Option(None, "--config-file", help="Path to config file")


@contextmanager
def report_errors():
    """Turn ThoughtsError into a red message and exit status 1."""
    try:
        yield
    except ThoughtsError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


def is_interactive(yes: bool = False) -> bool:
    return not yes and sys.stdin.isatty()


def ask(question):
    """Run a questionary prompt, exiting if the user cancels."""
    answer = question.ask()
    if answer is None:
        console.print("[dim]Cancelled.[/dim]")
        raise typer.Exit(1)
    return answer


def _validator(check):
    def validate(value: str):
        try:
            check(value)
        except ThoughtsError as e:
            return str(e)
        return True
    return validate


def _default_user() -> str:
    user = sanitize_directory_name(os.environ.get("USER", "")) or "user"
    try:
        return validate_user_name(user)
    except ThoughtsError:
        return "user"


def prompt_base_config(interactive: bool) -> ThoughtsConfig:
    """Collect the top-level settings on first run."""
    thoughts_repo = DEFAULT_THOUGHTS_REPO
    repos_dir = DEFAULT_REPOS_DIR
    global_dir = DEFAULT_GLOBAL_DIR
    user = _default_user()

    if interactive:
        console.print(Panel(
            "Thoughts keeps your notes in a separate git repository and links\n"
            "them into each code repository under [bold]thoughts/[/bold].",
            title="First-time Setup",
            border_style="blue",
        ))
        thoughts_repo = ask(questionary.text(
            "Thoughts repository location:", default=DEFAULT_THOUGHTS_REPO,
        ))
        repos_dir = ask(questionary.text(
            "Directory name for repository-specific thoughts:",
            default=DEFAULT_REPOS_DIR,
            validate=_validator(lambda v: validate_dir_name(v, "reposDir")),
        ))
        global_dir = ask(questionary.text(
            "Directory name for global thoughts:",
            default=DEFAULT_GLOBAL_DIR,
            validate=_validator(lambda v: validate_dir_name(v, "globalDir")),
        ))
        user = ask(questionary.text(
            "Your user name:", default=user, validate=_validator(validate_user_name),
        ))

    validate_user_name(user)
    return ThoughtsConfig(
        thoughts_repo=thoughts_repo,
        repos_dir=validate_dir_name(repos_dir, "reposDir"),
        global_dir=validate_dir_name(global_dir, "globalDir"),
        user=user,
    )


def choose_repo_directory(repos_path: Path, code_repo: Path, directory: Optional[str], interactive: bool) -> str:
    """Pick the directory under reposDir that this code repository maps to."""
    default_name = sanitize_directory_name(get_repo_name_from_path(str(code_repo)))

    if directory:
        name = sanitize_directory_name(directory)
        if name != directory:
            console.print(f"[dim]Using sanitized directory name: {name}[/dim]")
        return name

    if not interactive:
        return default_name

    existing = []
    if repos_path.is_dir():
        existing = sorted(
            p.name for p in repos_path.iterdir()
            if p.is_dir() and not p.name.startswith(".")
        )

    if existing:
        create_choice = "Create a new directory"
        choice = ask(questionary.select(
            "Select a thoughts directory for this repository:",
            choices=[create_choice, *existing],
        ))
        if choice != create_choice:
            return choice

    name = ask(questionary.text("Name for the new thoughts directory:", default=default_name))
    return sanitize_directory_name(name)


def print_sync_result(result: SyncResult) -> None:
    if result.committed:
        console.print("[green]Committed thoughts changes[/green]")
    else:
        console.print("[dim]No changes to commit[/dim]")

    if result.pushed:
        console.print(f"[green]Pushed to {result.remote}[/green]")
    elif not result.remote:
        console.print("[dim]No remote configured, changes kept locally[/dim]")

    for warning in result.warnings:
        console.print(f"[yellow]Warning: {warning}[/yellow]")

    if result.new_users:
        console.print(f"[green]Added symlinks for new users: {', '.join(result.new_users)}[/green]")

    index = result.index
    console.print(
        f"[dim]Search index: {index.total} files ({index.linked} linked, {index.removed} removed)[/dim]"
    )
    if index.failed:
        console.print(f"[yellow]{index.failed} files could not be hard linked into searchable/[/yellow]")


def version_callback(value: bool):
    if value:
        console.print(f"thoughts {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", callback=version_callback, is_eager=True, help="Show version and exit",
    ),
):
    """Manage developer thoughts and notes alongside your code repositories."""


@app.command()
def init(
    force: bool = typer.Option(False, "--force", help="Force reconfiguration even if already set up"),
    config_file: Optional[Path] = CONFIG_FILE_OPTION,
    directory: Optional[str] = typer.Option(
        None, "--directory", help="Repository directory name under reposDir (skips the prompt)",
    ),
    profile: Optional[str] = typer.Option(None, "--profile", help="Use a specific thoughts profile"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Accept defaults instead of prompting"),
):
    """Initialize thoughts for the current repository."""
    with report_errors():
        code_repo = git.get_repo_root(Path.cwd())
        repo_key = str(code_repo)
        interactive = is_interactive(yes)

        config = ThoughtsConfig.from_dict(load_config_file(config_file))
        if config is None:
            config = prompt_base_config(interactive)
        elif profile and profile not in config.profiles:
            raise ProfileNotFound(profile)

        existing = get_repo_mapping(config, repo_key)
        if existing and not force:
            console.print(
                f"[yellow]Thoughts already initialized for this repository "
                f"(mapped to {existing.repo}).[/yellow]\n"
                "[dim]Use --force to reconfigure.[/dim]"
            )
            return

        resolved = resolve_profile_for_repo(config, repo_key, profile)
        if ensure_thoughts_repo_exists(resolved):
            console.print(f"[green]Initialized thoughts repository at {resolved.root}[/green]")

        repo_name = choose_repo_directory(resolved.repos_path, code_repo, directory, interactive)
        if not repo_name:
            raise ThoughtsError("Repository directory name cannot be empty")

        set_repo_mapping(config, repo_key, repo_name, resolved.profile_name)
        save_thoughts_config(config, config_file)

        create_thoughts_directory_structure(resolved, repo_name, config.user)

        tracked = git.tracked_files(code_repo, THOUGHTS_DIR)
        if tracked:
            console.print(
                f"[yellow]Warning: {len(tracked)} files under thoughts/ are tracked by this repository. "
                "Remove them with 'git rm -r --cached thoughts'.[/yellow]"
            )

        if force:
            unlink_thoughts_directory(code_repo)
        links = link_thoughts_directory(code_repo, resolved, repo_name, config.user)

        claude_md = get_thoughts_dir(code_repo) / "CLAUDE.md"
        if not claude_md.exists():
            claude_md.write_text(
                generate_claude_md(
                    resolved.thoughts_repo, resolved.repos_dir, repo_name, config.user, resolved.global_dir,
                ),
                encoding="utf-8",
            )

        hooks = setup_git_hooks(code_repo)
        for name in hooks.backed_up:
            console.print(f"[dim]Existing {name} hook saved as {name}.old[/dim]")

        with console.status("[bold blue]Syncing thoughts...", spinner="dots"):
            result = sync_thoughts(code_repo, resolved, repo_name, config.user)

        print_sync_result(result)

        thoughts_root = contract_home(str(resolved.root))
        console.print()
        console.print(Panel(
            f"[bold]Thoughts repo:[/bold] {thoughts_root}\n"
            f"[bold]Repository dir:[/bold] {resolved.repos_dir}/{repo_name}\n"
            f"[bold]Profile:[/bold] {resolved.profile_name or 'default'}\n"
            f"[bold]Links:[/bold] {', '.join(links.created) or 'none new'}\n"
            f"[bold]Hooks updated:[/bold] {', '.join(hooks.updated) or 'none'}\n\n"
            f"Write notes in [bold]thoughts/{config.user}/[/bold] and run [bold]thoughts sync[/bold].",
            title="Thoughts Initialized",
            border_style="green",
        ))
        for name in links.skipped:
            console.print(f"[yellow]thoughts/{name} already exists and was left untouched[/yellow]")


@app.command()
def uninit(
    force: bool = typer.Option(False, "--force", help="Force removal even if not in configuration"),
    config_file: Optional[Path] = CONFIG_FILE_OPTION,
):
    """Remove thoughts setup from the current repository."""
    with report_errors():
        code_repo = git.get_repo_root(Path.cwd())
        repo_key = str(code_repo)

        config = ThoughtsConfig.from_dict(load_config_file(config_file))
        mapping = get_repo_mapping(config, repo_key) if config else None

        if not mapping and not force:
            raise ConfigNotFound(
                "Thoughts not initialized for this repository. Use --force to remove thoughts/ anyway."
            )

        if unlink_thoughts_directory(code_repo):
            console.print("[green]Removed thoughts/ directory[/green]")
        else:
            console.print("[dim]No thoughts/ directory to remove[/dim]")

        if mapping:
            remove_repo_mapping(config, repo_key)
            save_thoughts_config(config, config_file)
            console.print("[green]Removed repository mapping[/green]")

            try:
                resolved = resolve_profile_for_repo(config, repo_key, mapping.profile)
            except ProfileNotFound:
                return
            content_path = contract_home(str(resolved.repo_thoughts_path(mapping.repo)))
            console.print(f"[dim]Your thoughts remain in {content_path}[/dim]")


@app.command()
def sync(
    message: Optional[str] = typer.Option(None, "--message", "-m", help="Commit message for sync"),
    rebuild_index: bool = typer.Option(False, "--rebuild-index", help="Recreate searchable/ from scratch"),
    config_file: Optional[Path] = CONFIG_FILE_OPTION,
):
    """Sync thoughts to the thoughts repository."""
    with report_errors():
        code_repo = git.get_repo_root(Path.cwd())
        repo_key = str(code_repo)
        config = require_thoughts_config(load_config_file(config_file))

        mapping = get_repo_mapping(config, repo_key)
        if not mapping or not get_thoughts_dir(code_repo).is_dir():
            raise ConfigNotFound("Thoughts not initialized for this repository. Run 'thoughts init' first.")

        resolved = resolve_profile_for_repo(config, repo_key)
        with console.status("[bold blue]Syncing thoughts...", spinner="dots"):
            result = sync_thoughts(code_repo, resolved, mapping.repo, config.user, message, rebuild_index)

        print_sync_result(result)


@app.command()
def status(
    config_file: Optional[Path] = CONFIG_FILE_OPTION,
):
    """Show status of the thoughts setup and repository."""
    with report_errors():
        config = require_thoughts_config(load_config_file(config_file))

        try:
            code_repo = git.get_repo_root(Path.cwd())
        except ThoughtsError:
            code_repo = None

        mapping = get_repo_mapping(config, str(code_repo)) if code_repo else None
        resolved = resolve_profile_for_repo(config, str(code_repo)) if mapping else config.default_profile

        table = Table(title="Thoughts Status", show_header=False)
        table.add_column("Setting", style="cyan")
        table.add_column("Value")

        table.add_row("User", config.user)
        table.add_row("Thoughts repo", contract_home(str(resolved.root)))
        table.add_row("Profile", resolved.profile_name or "default")
        table.add_row("Code repository", str(code_repo) if code_repo else "[dim]not in a git repository[/dim]")

        if code_repo:
            if mapping:
                table.add_row("Mapped to", f"{resolved.repos_dir}/{mapping.repo}")
            else:
                table.add_row("Mapped to", "[yellow]not initialized[/yellow]")

            thoughts_dir = get_thoughts_dir(code_repo)
            table.add_row(
                "thoughts/",
                "[green]present[/green]" if thoughts_dir.is_dir() else "[yellow]missing[/yellow]",
            )

            states = get_hook_states(code_repo)
            hook_text = ", ".join(
                f"{name}: {'ok' if state is HookState.CURRENT else state.value}"
                for name, state in states.items()
            )
            table.add_row("Hooks", hook_text)

        root = resolved.root
        if (root / ".git").exists():
            changes = git.status_porcelain(root)
            table.add_row(
                "Uncommitted changes",
                f"[yellow]{len(changes)}[/yellow]" if changes else "[green]none[/green]",
            )
            table.add_row("Last commit", git.last_commit(root) or "[dim]none[/dim]")
            table.add_row("Remote", git.get_remote_url(root) or "[dim]none (local only)[/dim]")
        else:
            table.add_row("Repository", "[yellow]not initialized[/yellow]")

        console.print(table)


@app.command("config")
def config_cmd(
    edit: bool = typer.Option(False, "--edit", help="Open configuration in $EDITOR"),
    json_output: bool = typer.Option(False, "--json", help="Output configuration as JSON"),
    config_file: Optional[Path] = CONFIG_FILE_OPTION,
):
    """View or edit thoughts configuration."""
    path = find_config_path(config_file)

    if edit:
        editor = os.environ.get("EDITOR", "vi")
        subprocess.run([*shlex.split(editor), str(path)])
        return

    data = load_config_file(config_file)
    if json_output:
        typer.echo(json.dumps(data, indent=2))
        return

    config = ThoughtsConfig.from_dict(data)
    if config is None:
        console.print("[yellow]No thoughts configuration found. Run 'thoughts init' first.[/yellow]")
        return

    console.print(Panel(
        f"[bold]Config file:[/bold] {path}\n"
        f"[bold]Thoughts repo:[/bold] {config.thoughts_repo}\n"
        f"[bold]Repos dir:[/bold] {config.repos_dir}\n"
        f"[bold]Global dir:[/bold] {config.global_dir}\n"
        f"[bold]User:[/bold] {config.user}\n"
        f"[bold]Profiles:[/bold] {len(config.profiles)}",
        title="[bold blue]Thoughts Configuration[/bold blue]",
        border_style="blue",
    ))

    if config.repo_mappings:
        table = Table(title="Repository Mappings")
        table.add_column("Repository", style="cyan")
        table.add_column("Directory")
        table.add_column("Profile", style="dim")
        for repo_path, mapping in config.repo_mappings.items():
            table.add_row(repo_path, mapping.repo, mapping.profile or "default")
        console.print(table)


@profile_app.command("create")
def profile_create(
    name: str = typer.Argument(..., help="Profile name"),
    repo: Optional[str] = typer.Option(None, "--repo", help="Thoughts repository path"),
    repos_dir: Optional[str] = typer.Option(None, "--repos-dir", help="Repos directory name"),
    global_dir: Optional[str] = typer.Option(None, "--global-dir", help="Global directory name"),
    config_file: Optional[Path] = CONFIG_FILE_OPTION,
    yes: bool = typer.Option(False, "--yes", "-y", help="Accept defaults instead of prompting"),
):
    """Create a new thoughts profile."""
    with report_errors():
        config = require_thoughts_config(load_config_file(config_file))
        validate_profile_name(name)
        if name in config.profiles:
            raise ProfileExists(name)

        default_repo = f"{DEFAULT_THOUGHTS_REPO}-{name}"
        if is_interactive(yes):
            if repo is None:
                repo = ask(questionary.text("Thoughts repository location:", default=default_repo))
            if repos_dir is None:
                repos_dir = ask(questionary.text("Repos directory name:", default=config.repos_dir))
            if global_dir is None:
                global_dir = ask(questionary.text("Global directory name:", default=config.global_dir))

        resolved = create_profile(config, name, ProfileConfig(
            thoughts_repo=repo or default_repo,
            repos_dir=repos_dir or config.repos_dir,
            global_dir=global_dir or config.global_dir,
        ))
        ensure_thoughts_repo_exists(resolved)
        save_thoughts_config(config, config_file)

        console.print(f'[green]Profile "{name}" created[/green]')
        console.print(f"[dim]Use it with: thoughts init --profile {name}[/dim]")


@profile_app.command("list")
def profile_list(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    config_file: Optional[Path] = CONFIG_FILE_OPTION,
):
    """List all thoughts profiles."""
    with report_errors():
        config = require_thoughts_config(load_config_file(config_file))

        if json_output:
            typer.echo(json.dumps({n: p.to_dict() for n, p in config.profiles.items()}, indent=2))
            return

        table = Table(title="Thoughts Profiles")
        table.add_column("Name", style="cyan")
        table.add_column("Thoughts Repo")
        table.add_column("Repos Dir", style="dim")
        table.add_column("Global Dir", style="dim")
        table.add_column("Repos", justify="right")

        table.add_row(
            "default", config.thoughts_repo, config.repos_dir, config.global_dir,
            str(sum(1 for m in config.repo_mappings.values() if not m.profile)),
        )
        for name, profile in config.profiles.items():
            table.add_row(
                name, profile.thoughts_repo, profile.repos_dir, profile.global_dir,
                str(len(repos_using_profile(config, name))),
            )

        console.print(table)


@profile_app.command("show")
def profile_show(
    name: str = typer.Argument(..., help="Profile name"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    config_file: Optional[Path] = CONFIG_FILE_OPTION,
):
    """Show details of a specific profile."""
    with report_errors():
        config = require_thoughts_config(load_config_file(config_file))
        resolved = get_profile(config, name)
        repos = repos_using_profile(config, name)

        if json_output:
            data = config.profiles[name].to_dict()
            data["repos"] = repos
            typer.echo(json.dumps(data, indent=2))
            return

        repo_lines = "\n".join(f"  {r}" for r in repos) or "  [dim]none[/dim]"
        console.print(Panel(
            f"[bold]Thoughts repo:[/bold] {resolved.thoughts_repo}\n"
            f"[bold]Repos dir:[/bold] {resolved.repos_dir}\n"
            f"[bold]Global dir:[/bold] {resolved.global_dir}\n"
            f"[bold]Used by:[/bold]\n{repo_lines}",
            title=f"[bold blue]Profile: {name}[/bold blue]",
            border_style="blue",
        ))


@profile_app.command("delete")
def profile_delete(
    name: str = typer.Argument(..., help="Profile name"),
    force: bool = typer.Option(False, "--force", help="Force deletion even if in use"),
    config_file: Optional[Path] = CONFIG_FILE_OPTION,
):
    """Delete a thoughts profile."""
    with report_errors():
        config = require_thoughts_config(load_config_file(config_file))
        try:
            orphaned = delete_profile(config, name, force=force)
        except ProfileInUse as e:
            console.print(f"[red]Error: {e}:[/red]")
            for repo_path in e.repos:
                console.print(f"  [dim]{repo_path}[/dim]")
            console.print("[dim]Use --force to delete it anyway.[/dim]")
            raise typer.Exit(1)

        save_thoughts_config(config, config_file)
        console.print(f'[green]Profile "{name}" deleted[/green]')
        for repo_path in orphaned:
            console.print(f"[yellow]Warning: {repo_path} still references this profile[/yellow]")


if __name__ == "__main__":
    app()
