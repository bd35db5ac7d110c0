"""
school-authz: inspect and validate the permission taxonomy.

    school-authz analyze                  modules and permission counts
    school-authz report [--role R]        role summary, or one role's permissions
    school-authz check ROLE PERMISSION    exit 0 when granted, 1 when denied
    school-authz validate [--file F]      exit 1 when the taxonomy is invalid
    school-authz export                   seed data as JSON

The taxonomy is the built-in table unless TAXONOMY_FILE (or --taxonomy)
points at a JSON document.
"""

import json

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from school_authz.auth.exceptions import ConfigurationError, TaxonomyValidationError, UnknownRole
from school_authz.auth.permissions import PermissionCategory
from school_authz.auth.taxonomy import PermissionTaxonomyGenerator, TaxonomyConfig
from school_authz.config import settings
from school_authz.logging_config import configure_logging

console = Console()


def _load_config(path: str | None) -> TaxonomyConfig:
    if path:
        return TaxonomyConfig.from_file(path)
    return TaxonomyConfig.default()


def _generator(ctx: click.Context) -> PermissionTaxonomyGenerator:
    try:
        return PermissionTaxonomyGenerator(_load_config(ctx.obj["taxonomy"]))
    except ConfigurationError as e:
        console.print(str(e), style="red", markup=False)
        ctx.exit(2)


def _generate(ctx: click.Context):
    generator = _generator(ctx)
    try:
        return generator, generator.generate()
    except ConfigurationError as e:
        console.print(str(e), style="red", markup=False)
        ctx.exit(2)


@click.group()
@click.option("--taxonomy", type=click.Path(dir_okay=False), default=None,
              help="JSON taxonomy file (defaults to TAXONOMY_FILE, then the built-in table)")
@click.pass_context
def cli(ctx, taxonomy):
    """School permission taxonomy tools"""
    ctx.ensure_object(dict)
    ctx.obj["taxonomy"] = taxonomy or settings.taxonomy_file or None


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print machine-readable output")
@click.pass_context
def analyze(ctx, as_json):
    """Show modules and the permissions generated for each"""
    _, taxonomy = _generate(ctx)
    catalog = taxonomy.catalog

    if as_json:
        click.echo(json.dumps({
            "version": taxonomy.version,
            "modules": {
                module: [p.slug for p in perms] for module, perms in catalog.grouped().items()
            },
        }, indent=2))
        return

    console.print(Panel.fit(f"Permission taxonomy {escape(taxonomy.version)}", style="bold blue"))
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Module", style="cyan")
    table.add_column("Description")
    table.add_column("CRUD", justify="right")
    table.add_column("Specific", justify="right")

    for module, perms in catalog.grouped().items():
        specific = [p for p in perms if p.category is PermissionCategory.SPECIFIC]
        table.add_row(
            module,
            escape(catalog.module_description(module)),
            str(len(perms) - len(specific)),
            str(len(specific)),
        )

    console.print(table)
    console.print(f"Modules: {len(catalog.modules)}  Permissions: {len(catalog)}")


@cli.command()
@click.option("--role", "-r", help="Show one role's effective permissions")
@click.option("--module", "-m", help="Restrict the listing to one module")
@click.option("--json", "as_json", is_flag=True, help="Print machine-readable output")
@click.pass_context
def report(ctx, role, module, as_json):
    """Summarize roles, or list what one role can do"""
    generator, taxonomy = _generate(ctx)
    registry = taxonomy.registry

    if role is None:
        summary = generator.report()
        if as_json:
            click.echo(json.dumps(summary, indent=2))
            return
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Role", style="cyan")
        table.add_column("System")
        table.add_column("Grants", justify="right")
        table.add_column("Permissions", justify="right")
        table.add_column("Modules", justify="right")
        for role_id, row in summary["roles"].items():
            table.add_row(
                escape(role_id), "yes" if row["system"] else "no",
                str(row["grants"]), str(row["permissions"]), str(row["modules"]),
            )
        console.print(table)
        return

    try:
        granted = registry.effective_permissions(role)
    except UnknownRole as e:
        console.print(str(e), style="red", markup=False)
        ctx.exit(2)
    if module:
        granted = granted & taxonomy.catalog.permissions_for_module(module)

    if as_json:
        click.echo(json.dumps({
            "role": role,
            "grants": registry.get(role).grant_strings,
            "modules": sorted(registry.accessible_modules(role)),
            "permissions": sorted(granted),
        }, indent=2))
        return

    console.print(Panel.fit(f"Role {escape(role)}", style="bold blue"))
    console.print(f"Grants: {', '.join(registry.get(role).grant_strings) or '-'}")
    for slug in sorted(granted):
        console.print(f"  {slug}")
    console.print(f"{len(granted)} permissions")


@cli.command()
@click.argument("role")
@click.argument("permission")
@click.pass_context
def check(ctx, role, permission):
    """Check whether ROLE holds PERMISSION"""
    _, taxonomy = _generate(ctx)
    try:
        granted = permission in taxonomy.registry.effective_permissions(role)
    except UnknownRole as e:
        console.print(str(e), style="red", markup=False)
        ctx.exit(2)

    if not taxonomy.catalog.exists(permission):
        console.print(f"[yellow]{escape(permission)} is not in the catalog[/yellow]")

    if granted:
        console.print(f"[green]ALLOW[/green] {escape(role)} {escape(permission)}")
    else:
        console.print(f"[red]DENY[/red] {escape(role)} {escape(permission)}")
        ctx.exit(1)


@cli.command()
@click.option("--file", "-f", "path", type=click.Path(dir_okay=False), default=None,
              help="Validate this JSON taxonomy instead of the configured one")
@click.pass_context
def validate(ctx, path):
    """Validate the taxonomy; exit 1 on any error"""
    try:
        generator = PermissionTaxonomyGenerator(_load_config(path or ctx.obj["taxonomy"]))
        catalog = generator.build_catalog()
        errors = generator.validate(catalog, generator.build_roles())
    except TaxonomyValidationError as e:
        errors = e.errors
    except ConfigurationError as e:
        errors = [str(e)]

    if errors:
        console.print(f"[red]Taxonomy is invalid ({len(errors)} errors)[/red]")
        for error in errors:
            console.print(f"  - {error}", markup=False)
        ctx.exit(1)

    console.print(f"[green]Taxonomy is valid[/green]: {len(catalog.modules)} modules, {len(catalog)} permissions")


@cli.command()
@click.option("--output", "-o", type=click.File("w"), default="-", help="Write to a file instead of stdout")
@click.pass_context
def export(ctx, output):
    """Export permissions and roles as seed JSON"""
    generator = _generator(ctx)
    try:
        data = generator.seed_data()
    except ConfigurationError as e:
        console.print(str(e), style="red", markup=False)
        ctx.exit(2)
    output.write(json.dumps(data, indent=2))
    output.write("\n")


def main() -> None:
    configure_logging(settings.log_level, "text")
    cli(obj={})


if __name__ == "__main__":
    main()
