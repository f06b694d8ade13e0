"""Typer CLI entrypoints for Parley."""

from __future__ import annotations

import sys
from typing import List, Optional

import click
import typer
from typer.core import TyperGroup

from parley import __version__
from parley.config import ProjectConfigError, initialize_project_config, load_settings
from parley.kernel.registry import CommandPlugin, PluginRegistry
from parley.prompt.system_prompt import PromptLoadError
from parley.providers.factory import ProviderFactory
from parley.repl import ensure_config, run_once, start_repl
from parley.ui.line_reader import TerminalInitError
from parley.ui.render import render_notice

_VENDOR_HELP = "Generation backend (default from config): ollama|claude"
_MODEL_HELP = "Model name passed to the backend"


class ParleyGroup(TyperGroup):
    """Treat unknown first positional token as implicit `run` command."""

    def resolve_command(self, ctx: click.Context, args: List[str]):
        if args and not args[0].startswith("-"):
            known = set(self.list_commands(ctx))
            if args[0] not in known:
                run_command = self.get_command(ctx, "run")
                if run_command is not None:
                    return "run", run_command, args
        return super().resolve_command(ctx, args)


app = typer.Typer(
    invoke_without_command=True,
    no_args_is_help=False,
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
    help="Parley terminal AI chat",
)
app.info.cls = ParleyGroup


def _execute_chat(vendor: Optional[str] = None, model: Optional[str] = None) -> int:
    try:
        return start_repl(vendor=vendor, model=model)
    except TerminalInitError as exc:
        typer.echo(render_notice("error", str(exc)), err=True)
        return 1


def _execute_prompt(text: str, vendor: Optional[str], model: Optional[str]) -> int:
    try:
        ensure_config()
        settings = load_settings(vendor=vendor, model=model)
        return run_once(text, settings=settings, provider_factory=ProviderFactory(), stream=sys.stdout)
    except (ProjectConfigError, PromptLoadError) as exc:
        typer.echo(render_notice("error", str(exc)), err=True)
        return 2


CHAT_PLUGIN = CommandPlugin(
    name="chat",
    description="Start an interactive AI chat session",
    parents=("ai",),
    version=__version__,
    run=_execute_chat,
)


def build_plugin_registry() -> PluginRegistry:
    registry = PluginRegistry()
    registry.register(CHAT_PLUGIN)
    return registry


def _mount_plugin(group: typer.Typer, plugin: CommandPlugin) -> None:
    def plugin_cmd(
        vendor: Optional[str] = typer.Option(None, "--vendor", help=_VENDOR_HELP),
        model: Optional[str] = typer.Option(None, "--model", help=_MODEL_HELP),
    ) -> None:
        raise typer.Exit(code=plugin.run(vendor=vendor, model=model))

    group.command(plugin.name, help="{0} (v{1})".format(plugin.description, plugin.version))(plugin_cmd)


def mount_plugins(target: typer.Typer, registry: PluginRegistry) -> None:
    for parent in registry.parent_groups():
        group = typer.Typer(help="{0} commands".format(parent.upper()), no_args_is_help=True)
        for plugin in registry.by_parent(parent):
            _mount_plugin(group, plugin)
        target.add_typer(group, name=parent)


mount_plugins(app, build_plugin_registry())


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    vendor: Optional[str] = typer.Option(None, "--vendor", help=_VENDOR_HELP),
    model: Optional[str] = typer.Option(None, "--model", help=_MODEL_HELP),
) -> None:
    ctx.obj = ctx.obj or {}
    ctx.obj["vendor"] = vendor
    ctx.obj["model"] = model

    if ctx.invoked_subcommand is not None:
        return

    raise typer.Exit(code=_execute_chat(vendor=vendor, model=model))


@app.command("init")
def init_cmd(
    force: bool = typer.Option(False, "--force", help="Recreate the configuration directory"),
) -> None:
    """Write the default configuration file."""
    try:
        config_root = initialize_project_config(force=force)
    except ProjectConfigError as exc:
        typer.echo(render_notice("error", str(exc)), err=True)
        raise typer.Exit(code=2)

    typer.echo(render_notice("success", "Initialized config at: {0}".format(config_root)))


@app.command("run")
def run_cmd(
    ctx: typer.Context,
    text_parts: List[str] = typer.Argument(..., help="Prompt text"),
    vendor: Optional[str] = typer.Option(None, "--vendor", help=_VENDOR_HELP),
    model: Optional[str] = typer.Option(None, "--model", help=_MODEL_HELP),
) -> None:
    """Send one prompt and print the reply."""
    text = " ".join(text_parts).strip()
    if not text:
        typer.echo(render_notice("error", "Prompt text is required."), err=True)
        raise typer.Exit(code=2)

    parent_obj = ctx.obj or {}
    exit_code = _execute_prompt(
        text,
        vendor=vendor if vendor is not None else parent_obj.get("vendor"),
        model=model if model is not None else parent_obj.get("model"),
    )
    raise typer.Exit(code=exit_code)


@app.command("chat")
def chat_cmd(
    ctx: typer.Context,
    vendor: Optional[str] = typer.Option(None, "--vendor", help=_VENDOR_HELP),
    model: Optional[str] = typer.Option(None, "--model", help=_MODEL_HELP),
) -> None:
    """Interactive chat mode."""
    parent_obj = ctx.obj or {}
    exit_code = _execute_chat(
        vendor=vendor if vendor is not None else parent_obj.get("vendor"),
        model=model if model is not None else parent_obj.get("model"),
    )
    raise typer.Exit(code=exit_code)
