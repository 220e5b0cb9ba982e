import click
import json
import logging
from dotenv import load_dotenv

from schemascout.config.loader import load_config, DEFAULT_CONFIG
from schemascout.core.engine import SchemaIntrospector
from schemascout.core.exceptions import SchemaScoutError
from schemascout.core.utils.fs import create_file_if_missing, write_json_output

# Load .env file automatically
load_dotenv()

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

CONFIG_FILE = "schemascout.yml"


@click.group()
@click.version_option(version="0.1.0", prog_name="schemascout")
def cli():
    """schemascout: Infer document schemas by adaptive random sampling."""
    pass


@cli.command()
def init():
    """Initialize a new schemascout project."""
    click.echo("Initializing schemascout project...")

    if create_file_if_missing(CONFIG_FILE, DEFAULT_CONFIG):
        click.echo(f"Created {CONFIG_FILE}")
    else:
        click.echo(f"{CONFIG_FILE} already exists.")

    click.echo("\nNext steps:")
    click.echo("  1. Set your connection:  export MONGODB_URI=mongodb://localhost:27017")
    click.echo("  2. Set your database:    export MONGODB_DATABASE=sample_mflix")
    click.echo(f"  3. List collections in:  {CONFIG_FILE}")
    click.echo("  4. Run introspection:    schemascout run")


@cli.command()
@click.option("--collection", "-c", help="Introspect only this collection (default: all)")
@click.option("--output", "-o", type=click.Path(), help="Write the JSON result to this file (default: stdout)")
@click.option("--config", "config_path", default=CONFIG_FILE, show_default=True, help="Config file")
@click.option("--verbose", "-v", is_flag=True, help="Log every sampling batch")
def run(collection, output, config_path, verbose):
    """Sample the configured collections and infer their schemas."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        config = load_config(config_path)
        batch = SchemaIntrospector(config).introspect_all(collection_name=collection)
    except SchemaScoutError as e:
        raise click.ClickException(str(e))
    except Exception as e:
        raise click.ClickException(f"Source error: {e}")

    payload = {
        "collections": [batch.results[name].to_output_dict() for name in batch.results],
    }
    if batch.failures:
        payload["_failures"] = dict(batch.failures)
    text = json.dumps(payload, indent=2, ensure_ascii=False)

    if output:
        write_json_output(output, text)
        for name, result in batch.results.items():
            click.echo(
                f"{name}: {result.entity.name} ({len(result.entity.fields)} fields, "
                f"{len(result.nested_types)} nested types, "
                f"{result.metrics.total_sampled:,} sampled, {result.metrics.stop_reason.value})"
            )
        click.echo(f"\nWrote {output}")
    else:
        click.echo(text)

    if batch.failures:
        for name, error in batch.failures.items():
            click.echo(f"Failed: {name}: {error}", err=True)
        raise SystemExit(1)


@cli.command()
@click.option("--config", "config_path", default=CONFIG_FILE, show_default=True, help="Config file")
def check(config_path):
    """Connect to the source and show document counts."""
    try:
        config = load_config(config_path)
        counts = SchemaIntrospector(config).check()
    except SchemaScoutError as e:
        raise click.ClickException(str(e))
    except Exception as e:
        raise click.ClickException(f"Source check failed: {e}")

    click.echo(f"Source: {config.source.type}")
    for name, count in counts.items():
        click.echo(f"  {name}: {count:,} documents")


if __name__ == "__main__":
    cli()
