# globfilter/cli/interface.py
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List

import click
import structlog

from globfilter import __version__ as app_version
from globfilter.cli.options import filtering_options
from globfilter.config.loader import config_options_from_toml, load_and_merge_configs, save_config_to_profile
from globfilter.config.settings import FilterConfig, config_defaults
from globfilter.core import base_paths, filtering, matching
from globfilter.core.gitignore import GitignoreFilter
from globfilter.core.output import render_paths, write_to_file, write_to_stdout
from globfilter.exceptions import GlobFilterError, PatternError
from globfilter.logging_setup import configure_logging, level_for_verbosity

log = structlog.get_logger(__name__)

EXIT_ERROR = 1
EXIT_PATTERN_ERRORS = 2

# cli parameters that map one-to-one onto FilterConfig attributes.
_CLI_CONFIG_ATTRS = (
    "include_patterns",
    "exclude_patterns",
    "include_from_files",
    "exclude_from_files",
    "respect_gitignore",
    "nul_separated",
    "output_file",
    "strict",
)


def _build_effective_config(ctx: click.Context, cli_params: Dict[str, Any], **invocation: Any) -> FilterConfig:
    # precedence: dataclass defaults < config file < profile < explicit cli flags.
    effective_options = config_defaults()
    raw_configs_from_toml_files = load_and_merge_configs()
    effective_options.update(
        config_options_from_toml(raw_configs_from_toml_files, cli_params.get("active_config_profile_name"))
    )
    for attr in _CLI_CONFIG_ATTRS:
        if ctx.get_parameter_source(attr) == click.core.ParameterSource.COMMANDLINE:
            value = cli_params[attr]
            effective_options[attr] = list(value) if isinstance(value, tuple) else value
    effective_options.update(invocation)
    return FilterConfig(**effective_options)


def _read_paths_from_stdin(nul_separated: bool) -> List[str]:
    log.info("reading_paths_from_stdin", nul_separated=nul_separated)
    data = sys.stdin.read()
    separator = "\0" if nul_separated else "\n"
    return [p.strip("\r") for p in data.split(separator) if p.strip()]


def _report_pattern_errors(errors: List[PatternError]):
    for error in errors:
        click.secho(f"Warning: {error} (pattern ignored)", fg="yellow", err=True)


def _run_filter_command(ctx: click.Context, cli_params: Dict[str, Any], select: Callable[[FilterConfig], filtering.Selection], **invocation: Any):
    try:
        config = _build_effective_config(ctx, cli_params, **invocation)

        save_profile_name = cli_params.get("save_profile_name")
        if save_profile_name:
            if save_config_to_profile(config, save_profile_name):
                click.echo(f"Info: Saved profile '{save_profile_name}'.", err=True)
            else:
                click.echo(f"Info: Nothing to save for profile '{save_profile_name}'.", err=True)
            ctx.exit(0)

        selection = select(config)
        _report_pattern_errors(selection.errors)

        output_text = render_paths(selection.paths, config.nul_separated)
        if config.output_file:
            write_to_file(config.output_file, output_text)
            click.echo(f"Info: {len(selection.paths)} paths written to: {config.output_file}", err=True)
        else:
            write_to_stdout(output_text)

        if selection.errors and config.strict:
            ctx.exit(EXIT_PATTERN_ERRORS)

    except click.exceptions.Exit:
        raise
    except GlobFilterError as e:
        log.error("handled_application_error_in_cli", error_type=type(e).__name__, message=str(e))
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(EXIT_ERROR)
    except click.ClickException:
        raise
    except Exception as e:
        log.critical("unexpected_critical_error_in_cli", message=str(e), exc_info=True)
        click.secho(f"Unexpected critical error: {e}. Please report this.", fg="red", err=True)
        sys.exit(EXIT_ERROR)


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option("--verbose", "-v", "verbosity_level", count=True, help="Verbosity: -v info, -vv debug.")
@click.option("--force-json-logs", "force_json_logs_cli", is_flag=True, default=False, help="Force JSON logs.")
@click.version_option(version=app_version, package_name="globfilter", prog_name="globfilter", help="Show version and exit.")
def main_cli_group(verbosity_level: int, force_json_logs_cli: bool):
    """globfilter: select files with include/exclude glob patterns.

    Patterns are `/`-separated and anchored. `*` matches within one path
    segment, `**` matches any number of whole segments. Excludes always win
    over includes, and without any include pattern nothing is selected.
    """
    configure_logging(log_level_str=level_for_verbosity(verbosity_level), force_json_logs=force_json_logs_cli)
    log.debug("cli_command_invoked", verbosity=verbosity_level)


@main_cli_group.command("find")
@click.argument("root", type=click.Path(file_okay=False, path_type=Path), default=".")
@filtering_options
@click.pass_context
def find_command(ctx: click.Context, root: Path, **cli_params: Any):
    """Walk ROOT (default: current directory) and print the selected files."""

    def select(config: FilterConfig) -> filtering.Selection:
        selection = filtering.find(config.root, config.effective_includes(), config.effective_excludes())
        if config.respect_gitignore:
            selection.paths = GitignoreFilter(config.root).drop_ignored(selection.paths)
        return selection

    _run_filter_command(ctx, cli_params, select, root=root)


@main_cli_group.command("files")
@click.argument("paths", nargs=-1)
@click.option("--stdin", "read_from_stdin", is_flag=True, default=False, help="Read candidate paths from stdin, one per line.")
@filtering_options
@click.pass_context
def files_command(ctx: click.Context, paths: tuple, read_from_stdin: bool, **cli_params: Any):
    """Filter the given PATHS (or paths read from stdin) without touching the filesystem."""

    def select(config: FilterConfig) -> filtering.Selection:
        candidates = list(config.input_paths)
        if config.read_from_stdin:
            candidates.extend(_read_paths_from_stdin(config.nul_separated))
        selection = filtering.files(candidates, config.effective_includes(), config.effective_excludes())
        if config.respect_gitignore:
            selection.paths = GitignoreFilter(Path(".")).drop_ignored(selection.paths)
        return selection

    _run_filter_command(ctx, cli_params, select, input_paths=list(paths), read_from_stdin=read_from_stdin)


@main_cli_group.command("base-paths")
@click.argument("patterns", nargs=-1, required=True)
def base_paths_command(patterns: tuple):
    """Print the directories a walk over PATTERNS would start from."""
    for path in base_paths.get_base_paths([], patterns):
        click.echo(path)


@main_cli_group.command("match")
@click.argument("pattern")
@click.argument("path")
@click.pass_context
def match_command(ctx: click.Context, pattern: str, path: str):
    """Exit 0 if PATH matches PATTERN, 1 if not, 2 if PATTERN is invalid."""
    try:
        matched = matching.matches(pattern, path)
    except PatternError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        ctx.exit(EXIT_PATTERN_ERRORS)
    log.debug("match_checked", pattern=pattern, path=path, matched=matched)
    ctx.exit(0 if matched else EXIT_ERROR)
