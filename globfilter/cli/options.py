# globfilter/cli/options.py
"""
Reusable groups of Click options for the globfilter commands.
Uses click_option_group for better help message formatting.
"""
from pathlib import Path

import click
from click_option_group import optgroup

_pattern_file = click.Path(exists=True, dir_okay=False, readable=True, path_type=Path)


def filtering_options(cmd):
    """Applies the shared filtering, output and configuration option groups to a command."""
    decorators = [
        optgroup.group("Filtering Options", help="Control which paths are selected."),
        optgroup.option("-i", "--include", "include_patterns", multiple=True, help="Glob pattern for paths to include. Repeatable. Without any include, nothing is selected."),
        optgroup.option("-e", "--exclude", "exclude_patterns", multiple=True, help="Glob pattern for paths to exclude. Repeatable. Excludes win over includes."),
        optgroup.option("--include-from-file", "include_from_files", type=_pattern_file, multiple=True, help="File with include patterns, one per line."),
        optgroup.option("--exclude-from-file", "exclude_from_files", type=_pattern_file, multiple=True, help="File with exclude patterns, one per line."),
        optgroup.option("--respect-gitignore", "respect_gitignore", is_flag=True, default=False, help="Also drop paths ignored by .gitignore files."),
        optgroup.group("Output Options", help="Where and how selected paths are written."),
        optgroup.option("-0", "--null", "nul_separated", is_flag=True, default=False, help="NUL-separated paths (stdin input and output)."),
        optgroup.option("-o", "--output", "output_file", type=click.Path(dir_okay=False, writable=True, path_type=Path), default=None, help="Write selected paths to a file instead of stdout."),
        optgroup.option("--strict", "strict", is_flag=True, default=False, help="Exit with status 2 if any pattern is invalid."),
        optgroup.group("Configuration", help="Configuration profiles."),
        optgroup.option("--config-profile", "active_config_profile_name", default=None, help="Load a profile from config file(s)."),
        optgroup.option("--save", "save_profile_name", type=str, metavar="PROFILE_NAME", default=None, help="Save options to a profile in the project's .globfilter.toml and exit."),
    ]
    for decorator in reversed(decorators):
        cmd = decorator(cmd)
    return cmd
