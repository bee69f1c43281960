#!/usr/bin/env python3
"""
CLI tool for the CrateDB Cloud reconciliation engine
Plans and applies organization, project and cluster manifests against the
CrateDB Cloud API, keeping resource records in a local JSON state file
"""

import asyncio
import json
import os
import sys

import click
import yaml
from tabulate import tabulate

from errors import EngineError, ErrorKind, ReplacementRequired
from main import Application
from reconciler import Operation, OperationResult

DEFAULT_STATE_FILE = "cratedb.state.json"


class StateFile:
    """Resource records persisted between runs, keyed by '<kind>.<name>'"""

    def __init__(self, path: str = DEFAULT_STATE_FILE):
        self.path = path
        self.resources = {}
        if os.path.exists(path):
            with open(path, "r") as f:
                self.resources = json.load(f).get("resources", {})

    @staticmethod
    def address(kind: str, name: str) -> str:
        return f"{kind}.{name}"

    def get(self, kind: str, name: str):
        entry = self.resources.get(self.address(kind, name))
        return entry["record"] if entry else None

    def put(self, kind: str, name: str, record):
        self.resources[self.address(kind, name)] = {"kind": kind, "record": record}
        self._save()

    def drop(self, kind: str, name: str):
        self.resources.pop(self.address(kind, name), None)
        self._save()

    def _save(self):
        with open(self.path, "w") as f:
            json.dump({"version": 1, "resources": self.resources}, f, indent=2)


def load_manifest(filename: str):
    """Read a manifest with 'kind', optional 'name' and 'spec' keys"""
    with open(filename, "r") as f:
        if filename.endswith(".yaml") or filename.endswith(".yml"):
            data = yaml.safe_load(f)
        else:
            data = json.load(f)

    if not isinstance(data, dict) or "kind" not in data:
        raise click.BadParameter(
            "manifest must be a mapping with a 'kind' key", param_hint="FILENAME"
        )
    return data["kind"], data.get("name", data["kind"]), data.get("spec") or {}


def get_application(ctx) -> Application:
    """Build the application once per invocation"""
    if "app" not in ctx.obj:
        try:
            ctx.obj["app"] = Application(ctx.obj.get("explicit")).initialize()
        except EngineError as e:
            fail(e.diagnostic())
    return ctx.obj["app"]


def get_reconciler(ctx, kind: str):
    app = get_application(ctx)
    try:
        return app.reconciler(kind)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="kind")


def fail(diagnostic):
    """Print a diagnostic and exit with an error status"""
    click.echo(f"Error: {diagnostic.title}", err=True)
    if diagnostic.attribute:
        click.echo(f"Attribute: {diagnostic.attribute}", err=True)
    click.echo(diagnostic.detail, err=True)
    sys.exit(1)


def check(result: OperationResult) -> OperationResult:
    """Exit on a failed operation result"""
    if not result.success:
        fail(result.diagnostic)
    return result


def render_record(descriptor, record) -> str:
    """Render a record as an attribute/value table, masking secrets"""
    rows = []
    for spec in descriptor:
        value = record.get(spec.name)
        if spec.sensitive and value:
            value = "(sensitive)"
        elif isinstance(value, (dict, list)):
            value = json.dumps(value)
        rows.append([spec.name, value])
    return tabulate(rows, headers=["Attribute", "Value"], tablefmt="grid")


@click.group()
@click.option("--url", envvar="CRATEDB_URL", help="CrateDB Cloud URL")
@click.option("--api-key", envvar="CRATEDB_API_KEY", help="CrateDB API Key")
@click.option("--api-secret", envvar="CRATEDB_API_SECRET", help="CrateDB API Secret")
@click.option(
    "--state",
    "state_path",
    default=DEFAULT_STATE_FILE,
    show_default=True,
    help="Path of the JSON state file",
)
@click.pass_context
def cli(ctx, url, api_key, api_secret, state_path):
    """CrateDB Cloud CLI - reconcile organizations, projects and clusters"""
    ctx.ensure_object(dict)
    ctx.obj.setdefault(
        "explicit", {"url": url, "api_key": api_key, "api_secret": api_secret}
    )
    ctx.obj.setdefault("state", StateFile(state_path))


@cli.command()
@click.argument("filename", type=click.Path(exists=True))
@click.pass_context
def plan(ctx, filename):
    """Show what apply would do for a manifest"""
    kind, name, spec = load_manifest(filename)
    reconciler = get_reconciler(ctx, kind)
    prior = ctx.obj["state"].get(kind, name)

    try:
        delta = reconciler.plan(spec, prior)
    except ReplacementRequired as e:
        click.echo(f"{kind}.{name} must be replaced: {', '.join(e.attributes)}")
        return
    except EngineError as e:
        fail(e.diagnostic())

    if prior is None:
        click.echo(f"{kind}.{name} will be created")
        unknown = delta.unknown_attributes()
        if unknown:
            click.echo(f"Known after apply: {', '.join(unknown)}")
        return

    changed = delta.changed_attributes(reconciler.descriptor, prior)
    if not changed:
        click.echo(f"{kind}.{name} is up to date")
        return

    rows = []
    for attribute in changed:
        before, after = prior.get(attribute), delta.values[attribute]
        if reconciler.descriptor.get(attribute).sensitive:
            before = after = "(sensitive)"
        rows.append([attribute, before, after])
    click.echo(f"{kind}.{name} will be updated in place")
    click.echo(tabulate(rows, headers=["Attribute", "Before", "After"]))


@cli.command()
@click.argument("filename", type=click.Path(exists=True))
@click.pass_context
def apply(ctx, filename):
    """Create or update a resource from a YAML/JSON manifest"""
    kind, name, spec = load_manifest(filename)
    reconciler = get_reconciler(ctx, kind)
    state = ctx.obj["state"]
    prior = state.get(kind, name)

    if prior is None:
        result = check(asyncio.run(reconciler.run(Operation.CREATE, desired=spec)))
        state.put(kind, name, result.record)
        click.echo(f"{kind}.{name} created")
        click.echo(f"ID: {reconciler.kind.identifier(result.record)}")
        return

    try:
        changed = reconciler.has_changes(spec, prior)
    except EngineError as e:
        fail(e.diagnostic())

    if not changed:
        click.echo(f"{kind}.{name} is up to date")
        return

    result = asyncio.run(reconciler.run(Operation.UPDATE, desired=spec, prior=prior))
    if result.error_kind == ErrorKind.REPLACEMENT_REQUIRED:
        click.echo(f"{result.message}; replacing {kind}.{name}")
        check(asyncio.run(reconciler.run(Operation.DELETE, prior=prior)))
        state.drop(kind, name)
        result = check(asyncio.run(reconciler.run(Operation.CREATE, desired=spec)))
        state.put(kind, name, result.record)
        click.echo(f"{kind}.{name} replaced")
        return

    check(result)
    state.put(kind, name, result.record)
    click.echo(f"{kind}.{name} updated")


@cli.command()
@click.argument("filename", type=click.Path(exists=True))
@click.pass_context
def refresh(ctx, filename):
    """Refresh the stored record of a resource from CrateDB Cloud"""
    kind, name, _ = load_manifest(filename)
    reconciler = get_reconciler(ctx, kind)
    state = ctx.obj["state"]
    prior = state.get(kind, name)

    if prior is None:
        click.echo(f"{kind}.{name} is not in state")
        return

    result = check(asyncio.run(reconciler.run(Operation.READ, prior=prior)))
    if result.record is None:
        state.drop(kind, name)
        click.echo(f"Warning: {result.message}", err=True)
        return

    state.put(kind, name, result.record)
    click.echo(f"{kind}.{name} refreshed")


@cli.command(name="import")
@click.argument("kind")
@click.argument("identifier")
@click.option("--name", "-n", help="Name of the resource in state")
@click.pass_context
def import_(ctx, kind, identifier, name):
    """Adopt an existing resource into state by its id"""
    reconciler = get_reconciler(ctx, kind)
    name = name or kind

    result = check(
        asyncio.run(reconciler.run(Operation.IMPORT, identifier=identifier))
    )
    ctx.obj["state"].put(kind, name, result.record)
    click.echo(f"{kind}.{name} imported")


@cli.command()
@click.argument("filename", type=click.Path(exists=True))
@click.confirmation_option(prompt="Are you sure you want to destroy this resource?")
@click.pass_context
def destroy(ctx, filename):
    """Delete a resource and remove it from state"""
    kind, name, _ = load_manifest(filename)
    reconciler = get_reconciler(ctx, kind)
    state = ctx.obj["state"]
    prior = state.get(kind, name)

    if prior is None:
        click.echo(f"{kind}.{name} is not in state")
        return

    check(asyncio.run(reconciler.run(Operation.DELETE, prior=prior)))
    state.drop(kind, name)
    click.echo(f"{kind}.{name} destroyed")


@cli.command()
@click.argument("kind")
@click.argument("name", required=False)
@click.option(
    "--output", "-o", type=click.Choice(["table", "json", "yaml"]), default="table"
)
@click.pass_context
def show(ctx, kind, name, output):
    """Show the stored record of a resource"""
    reconciler = get_reconciler(ctx, kind)
    record = ctx.obj["state"].get(kind, name or kind)

    if record is None:
        click.echo(f"{kind}.{name or kind} is not in state")
        return

    if output == "json":
        click.echo(json.dumps(record, indent=2))
    elif output == "yaml":
        click.echo(yaml.dump(record, default_flow_style=False))
    else:
        click.echo(render_record(reconciler.descriptor, record))


@cli.command()
@click.option("--id", "organization_id", help="Show a single organization")
@click.pass_context
def organizations(ctx, organization_id):
    """List organizations visible to the API key"""
    app = get_application(ctx)

    try:
        if organization_id:
            found = [
                asyncio.run(app.data_source("organization").lookup(organization_id))
            ]
        else:
            found = asyncio.run(app.organizations())
    except EngineError as e:
        fail(e.diagnostic())

    headers = ["ID", "Name", "Plan", "Projects", "Role"]
    rows = [
        [
            org["id"],
            org["name"],
            org["plan_type"],
            org["project_count"],
            org["role_fqn"],
        ]
        for org in found
    ]
    click.echo(tabulate(rows, headers=headers, tablefmt="grid"))


if __name__ == "__main__":
    cli()
