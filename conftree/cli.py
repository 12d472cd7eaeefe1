# conftree/cli.py

import fnmatch
import json
import logging
import re

import click
import toml

from .exceptions import ConfigSourceError
from .loader import load_config

_GLOB_CHARS = frozenset("*?[]")
_REGEX_CHARS = frozenset(".+^$(){}|\\")


def _match(pattern: str, text: str, ignore_case: bool = False) -> bool:
    """
    Match a flattened leaf path (`db.host`) or a stringified leaf value.

    Patterns holding `*`, `?` or brackets are globs over the whole text,
    patterns holding other regex metacharacters are searched as regexes, and
    anything else must equal the text.
    """
    if ignore_case:
        pattern, text = pattern.lower(), text.lower()

    if _GLOB_CHARS.intersection(pattern):
        return fnmatch.fnmatchcase(text, pattern)
    if _REGEX_CHARS.intersection(pattern):
        return re.search(pattern, text) is not None
    return pattern == text


def _parse_overrides(pairs) -> dict:
    """Turn `KEY=JSON` pairs into a dot-key dict; non-JSON values stay strings."""
    overrides = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"expected KEY=VALUE, got {pair!r}", param_hint="--set")
        k, raw = pair.split("=", 1)
        try:
            overrides[k.strip()] = json.loads(raw.strip())
        except json.JSONDecodeError:
            overrides[k.strip()] = raw.strip()
    return overrides


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-c", "--config", "file_paths", multiple=True,
              help="JSON/TOML file to load (repeatable, later wins)")
@click.option("-p", "--prefix", help="Env-var prefix for overrides")
@click.option("-s", "--set", "pairs", multiple=True, help="`KEY=JSON` override (repeatable)")
@click.option("--dotenv", "dotenv_path", help="Path to a .env file")
@click.option("--no-dotenv", is_flag=True, help="Do not load a .env file")
@click.option("-v", "--verbose", is_flag=True, help="Log merge details to stderr")
@click.pass_context
def cli(ctx, file_paths, prefix, pairs, dotenv_path, no_dotenv, verbose):
    """
    conftree CLI: layer JSON/TOML files, env vars and overrides, then
    inspect the result via dot-notation.

    Load files (`-c base.toml -c local.json`), then run subcommands:
      • get       KEY
      • exists    KEY
      • keys      [KEY]
      • search    [--key PAT] [--val PAT] [-i]
      • dump      [--to json|toml] [--out FILE]
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    overrides = _parse_overrides(pairs)
    try:
        tree = load_config(
            file_paths=file_paths,
            prefix=prefix,
            overrides=overrides,
            use_dotenv=not no_dotenv,
            dotenv_path=dotenv_path,
        )
    except (FileNotFoundError, ConfigSourceError) as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        ctx.exit(1)

    ctx.obj = {"tree": tree}


@cli.command()
@click.argument("key")
@click.pass_context
def get(ctx, key):
    """Print the value of KEY (dot-notation) as JSON."""
    node = ctx.obj["tree"].get(key)
    if node is None:
        click.secho(f"Key not found: {key}", fg="yellow", err=True)
        ctx.exit(1)
    click.echo(json.dumps(node.to_value(), indent=2, default=str))


@cli.command()
@click.argument("key")
@click.pass_context
def exists(ctx, key):
    """Exit 0 if KEY exists in config, 1 otherwise."""
    if key in ctx.obj["tree"]:
        click.echo("true")
        ctx.exit(0)
    click.echo("false")
    ctx.exit(1)


@cli.command()
@click.argument("key", required=False)
@click.pass_context
def keys(ctx, key):
    """List the immediate child keys of the root, or of KEY."""
    node = ctx.obj["tree"]
    if key:
        node = node.get(key)
        if node is None:
            click.secho(f"Key not found: {key}", fg="yellow", err=True)
            ctx.exit(1)
    for child_key in node:
        click.echo(child_key)


@cli.command()
@click.option("--key", "key_pat", help="Pattern for keys (regex/glob/plain)")
@click.option("--val", "val_pat", help="Pattern for values (regex/glob/plain)")
@click.option("-i", "--ignore-case", is_flag=True,
              help="Make key/value matching case-insensitive")
@click.pass_context
def search(ctx, key_pat, val_pat, ignore_case):
    """
    Search leaf keys/values matching patterns.
    At least one of --key or --val must be provided.
    """
    if not (key_pat or val_pat):
        click.secho("Error: supply --key or --val", fg="red", err=True)
        ctx.exit(1)

    found = {}
    for k, v in ctx.obj["tree"].flatten().items():
        ks = _match(key_pat, k, ignore_case) if key_pat else True
        vs = _match(val_pat, str(v), ignore_case) if val_pat else True
        if ks and vs:
            found[k] = v

    if not found:
        click.echo("No matches")
        ctx.exit(1)

    click.echo(json.dumps(found, indent=2, default=str))


@cli.command()
@click.option("--to", "fmt", type=click.Choice(["json", "toml"]), default="json",
              help="Output format")
@click.option("--out", "out_file", help="Write to file (instead of stdout)")
@click.pass_context
def dump(ctx, fmt, out_file):
    """Print the merged configuration as JSON or TOML."""
    data = ctx.obj["tree"].to_value()
    if fmt == "toml":
        if not isinstance(data, dict):
            click.secho("Error: only a keyed configuration can be written as TOML",
                        fg="red", err=True)
            ctx.exit(1)
        text = toml.dumps(data)
    else:
        text = json.dumps(data, indent=2, default=str)

    if out_file:
        with open(out_file, "w") as f:
            f.write(text)
        click.secho(f"Wrote {fmt.upper()} to {out_file}", fg="green")
    else:
        click.echo(text)
