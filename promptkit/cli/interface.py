# promptkit/cli/interface.py
import sys
import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import click
from click_option_group import optgroup
from rich.console import Console as RichConsole
from rich.table import Table
import structlog
import toml

from promptkit import __version__ as app_version
from promptkit.config import RenderOptions, load_and_merge_configs, select_profile
from promptkit.core.output import copy_to_clipboard, write_to_file, write_to_stdout
from promptkit.core.templating import RenderResult, TemplateRenderer
from promptkit.exceptions import ConfigError, PromptKitError
from promptkit.logging_setup import configure_logging
from promptkit.util import parse_key_value_pairs

log = structlog.get_logger(__name__)

STDIN_TEMPLATE = "-"


class OutputFormat(Enum):
    BODY = "body"
    JSON = "json"
    SECTIONS = "sections"


def _load_params_file(params_file: Path) -> Dict[str, Any]:
    # .json or .toml files holding a top-level table of template params.
    try:
        text = params_file.read_text(encoding="utf-8")
        if params_file.suffix.lower() == ".json":
            data = json.loads(text)
        elif params_file.suffix.lower() == ".toml":
            data = toml.loads(text)
        else:
            raise ConfigError(f"unsupported params file type '{params_file.suffix}' (use .json or .toml)")
    except (OSError, ValueError) as e:
        # json and toml decode errors are both ValueErrors.
        raise ConfigError(f"could not read params file '{params_file}': {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"params file '{params_file}' must contain an object at the top level")
    log.debug("params_file_loaded", path=str(params_file), keys=list(data))
    return data


def _format_output(result: RenderResult, output_format: OutputFormat, section_name: Optional[str]) -> str:
    if section_name:
        section = result.section(section_name)
        if section is None:
            known = ", ".join(s.title for s in result.sections if s.title) or "none"
            raise ConfigError(f"section '{section_name}' not found in rendered output (sections: {known})")
        return section.content + "\n"
    if output_format == OutputFormat.JSON:
        # yaml front matter may carry dates, which json can't encode natively.
        return json.dumps(result.to_dict(), indent=2, default=str) + "\n"
    if output_format == OutputFormat.SECTIONS:
        blocks = [f"=== {s.title} ===\n\n{s.content}" if s.title else s.content for s in result.sections]
        return "\n\n".join(blocks) + "\n"
    return result.body + "\n"


def _print_console_summary(result: RenderResult):
    console = RichConsole(stderr=True)
    table = Table(title="Rendered sections", show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Lines", justify="right")
    table.add_column("Characters", justify="right")
    for index, section in enumerate(result.sections, start=1):
        table.add_row(
            str(index),
            section.title or "-",
            str(len(section.content.splitlines())),
            f"{len(section.content):,}",
        )
    console.print(table)
    if result.meta:
        console.print(f"[yellow]Front matter keys:[/yellow] {', '.join(map(str, result.meta))}")


def _build_render_options(cli_params: Dict[str, Any]) -> RenderOptions:
    # toml settings (with the selected profile) first, then cli flags on top.
    config_data = select_profile(load_and_merge_configs(), cli_params.get("config_profile"))
    options = RenderOptions.from_mapping(config_data)

    params: Dict[str, Any] = {}
    if cli_params.get("params_file"):
        params.update(_load_params_file(cli_params["params_file"]))
    params.update(parse_key_value_pairs(cli_params.get("user_vars") or ()))

    return options.merged({
        "directory": cli_params.get("directory"),
        "base_url": cli_params.get("base_url"),
        "timezone": cli_params.get("timezone"),
        "unescape": cli_params.get("unescape"),
        "params": params,
    })


def _write_output(text: str, output_file: Optional[Path], clipboard: bool):
    destination_used = False
    if output_file:
        write_to_file(output_file, text)
        click.echo(f"Info: Output written to: {output_file}", err=True)
        destination_used = True

    clipboard_copy_succeeded = False
    if clipboard:
        clipboard_copy_succeeded = copy_to_clipboard(text.strip())
        destination_used = True

    if not destination_used or (clipboard and not clipboard_copy_succeeded):
        if clipboard and not clipboard_copy_succeeded:
            click.echo("Info: Clipboard copy failed. Outputting to stdout instead.", err=True)
        log.info("writing_final_output_to_stdout")
        write_to_stdout(text)


@click.command(context_settings=dict(help_option_names=["-h", "--help"]))
@click.argument("template", metavar="TEMPLATE")
@optgroup.group("Template Source", help="Where templates are looked up.")
@optgroup.option("-d", "--dir", "directory", type=click.Path(file_okay=False, path_type=Path), default=None, help="Template directory. TEMPLATE is tried as a file name there (.md, then .txt) before being used as inline source.")
@optgroup.group("Parameters & Rendering", help="Values and settings passed to the template.")
@optgroup.option("--var", "user_vars", multiple=True, metavar="KEY=VALUE", help="Template parameter. Repeatable; overrides --params-file.")
@optgroup.option("--params-file", "params_file", type=click.Path(exists=True, dir_okay=False, readable=True, path_type=Path), default=None, help="JSON or TOML file with template parameters.")
@optgroup.option("--base-url", "base_url", default=None, help="Prefix for root-relative url/href helper arguments.")
@optgroup.option("--timezone", "timezone", default=None, help="IANA time zone for date helpers. Default: system local zone.")
@optgroup.option("--unescape/--no-unescape", "unescape", default=None, help="Revert quote, equals and backtick entities after rendering. Default: on.")
@optgroup.group("Output Control", help="What is printed and where it goes.")
@optgroup.option("-f", "--format", "output_format_str", type=click.Choice([f.value for f in OutputFormat]), default=OutputFormat.BODY.value, help="Output the body, the full result as JSON, or every section with its delimiter. Default: body.")
@optgroup.option("-s", "--section", "section_name", default=None, metavar="NAME", help="Output only the content of the named section.")
@optgroup.option("-o", "--output", "output_file", type=click.Path(dir_okay=False, writable=True, path_type=Path), default=None, help="Path to write the output to.")
@optgroup.option("--clipboard", "clipboard", is_flag=True, default=False, help="Copy output to clipboard.")
@optgroup.option("--console-summary", "console_summary", is_flag=True, default=False, help="Print a table of rendered sections on stderr.")
@optgroup.group("Application Behavior", help="Configuration profiles and logging.")
@optgroup.option("--config-profile", "config_profile", default=None, help="Apply a profile from the config file(s).")
@optgroup.option("--verbose", "-v", "verbosity_level", count=True, help="Verbosity: -v info, -vv debug.")
@optgroup.option("--force-json-logs", "force_json_logs_cli", is_flag=True, default=False, help="Force JSON logs.")
@click.version_option(version=app_version, package_name="promptkit", prog_name="promptkit", help="Show version and exit.")
def main_cli(template: str, **cli_params: Any):
    """promptkit: render a Handlebars prompt template.

    TEMPLATE is a template name (looked up in --dir), inline template source,
    or '-' to read the source from stdin."""
    log_level = "warning"
    if cli_params.get("verbosity_level", 0) == 1: log_level = "info"
    elif cli_params.get("verbosity_level", 0) >= 2: log_level = "debug"
    configure_logging(log_level_str=log_level, force_json_logs=cli_params.get("force_json_logs_cli", False))

    log.debug("cli_command_invoked", template=template, params={k: v for k, v in cli_params.items() if v})

    try:
        if template == STDIN_TEMPLATE:
            template = click.get_text_stream("stdin").read()
        options = _build_render_options(cli_params)
        renderer = TemplateRenderer(options)
        result = renderer.render(template)

        output_format = OutputFormat(cli_params["output_format_str"])
        text = _format_output(result, output_format, cli_params.get("section_name"))
        _write_output(text, cli_params.get("output_file"), cli_params.get("clipboard", False))

        if cli_params.get("console_summary"):
            _print_console_summary(result)

    except PromptKitError as e:
        log.error("handled_application_error_in_cli", error_type=type(e).__name__, message=str(e))
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)
    except click.ClickException as e:
        log.error("click_exception_in_cli", error_type=type(e).__name__, message=str(e))
        e.show(); sys.exit(e.exit_code)
    except Exception as e:
        log.critical("unexpected_critical_error_in_cli", message=str(e), exc_info=True)
        click.secho(f"Unexpected critical error: {e}. Please report this.", fg="red", err=True)
        sys.exit(1)
