"""Command line interface for :mod:`ldpathjson`."""

from pathlib import Path

import click

from .config import Config

__all__ = [
    "main",
]


@click.group()
@click.version_option()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    r"""ldpathjson - LDPath to JSON for repository resources.

    Resolve repository resources, fetch their RDF and project it to JSON
    with an LDPath program.

    Typical workflow: token > resolve > query
    """
    import logging

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            force=True,
        )
        logging.getLogger("ldpathjson").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s", force=True)


@main.command()
@click.option("--issuer", required=True, help="User on whose behalf the token is issued")
@click.option("--subject", default="camel-ldpath", show_default=True, help="Token subject")
def token(issuer: str, subject: str) -> None:
    """Print a bearer token for repository requests.

    Example:
      ldpathjson token --issuer jdoe
    """
    from datetime import timedelta

    from .auth import TokenIssuer
    from .errors import ConfigurationError

    try:
        issuer_service = TokenIssuer(Config.JWT_SECRET, Config.JWT_ALGORITHM)
        bearer = issuer_service.issue(
            subject, issuer, timedelta(seconds=Config.TOKEN_TTL_SECONDS),
        )
    except (ConfigurationError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        raise click.Abort()
    click.echo(bearer.token)


@main.command()
@click.option("--internal-uri", required=True, help="Container-based URL of the resource")
@click.option("--issuer", required=True, help="User on whose behalf the probe is made")
@click.option("--uri", default=None, help="External URI of the resource (for logging)")
def resolve(internal_uri: str, issuer: str, uri: str | None) -> None:
    """Print the address holding the RDF of a resource.

    For non-RDF resources this is the target of the 'describedby' link.

    Example:
      ldpathjson resolve --internal-uri http://repository:8080/rest/abc --issuer jdoe
    """
    from .auth import TokenIssuer
    from .errors import ConfigurationError
    from .resolver import AddressResolver

    try:
        bearer = TokenIssuer(Config.JWT_SECRET, Config.JWT_ALGORITHM).issue(
            "camel-ldpath", issuer,
        )
    except (ConfigurationError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        raise click.Abort()

    resolution = AddressResolver(timeout=Config.PROBE_TIMEOUT).resolve(
        uri or internal_uri, internal_uri, bearer.token,
    )
    click.echo(resolution.address)
    if resolution.redirected:
        click.echo("(from describedby link)", err=True)


@main.command()
@click.option("--uri", required=True, help="External URI of the resource")
@click.option("--issuer", required=True, help="User on whose behalf requests are made")
@click.option(
    "--program",
    "program_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="LDPath program file",
)
@click.option("--internal-uri", default=None, help="Container-based URL of the resource")
def query(uri: str, issuer: str, program_file: str, internal_uri: str | None) -> None:
    """Fetch a repository resource and print its LDPath JSON projection.

    Example:
      ldpathjson query --uri http://localhost:8080/rest/abc \\
        --issuer jdoe --program index.ldpath
    """
    from .errors import LdpathJsonError
    from .processors import (
        CONTAINER_URI_HEADER,
        RESOURCE_URI_HEADER,
        USERNAME_HEADER,
        LdpathProcessor,
        Message,
    )

    program = Path(program_file).read_text(encoding="utf-8")
    headers = {USERNAME_HEADER: issuer, RESOURCE_URI_HEADER: uri}
    if internal_uri:
        headers[CONTAINER_URI_HEADER] = internal_uri

    try:
        processor = LdpathProcessor.from_config(Config, query=program)
        message = processor.process(Message(headers=headers))
    except LdpathJsonError as e:
        click.echo(f"Error: {e}", err=True)
        raise click.Abort()
    click.echo(message.body)


@main.command()
@click.option("--uri", required=True, help="Context resource URI")
@click.option(
    "--program",
    "program_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="LDPath program file",
)
@click.option(
    "--data",
    "data_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="RDF file to evaluate against",
)
@click.option("--format", "rdf_format", default=None, help="RDF format (guessed from extension)")
def evaluate(uri: str, program_file: str, data_file: str, rdf_format: str | None) -> None:
    """Evaluate an LDPath program against a local RDF file.

    No network access is made; useful for developing programs.

    Example:
      ldpathjson evaluate --uri http://localhost:8080/rest/abc \\
        --program index.ldpath --data abc.ttl
    """
    from rdflib import Graph, URIRef

    from .errors import LdpathJsonError
    from .ldpath import GraphBackend, evaluate_program, parse_program
    from .projector import project

    graph = Graph()
    try:
        graph.parse(data_file, format=rdf_format, publicID=uri)
        program = parse_program(Path(program_file).read_text(encoding="utf-8"))
        result = evaluate_program(program, URIRef(uri), GraphBackend(graph))
        click.echo(project(result))
    except LdpathJsonError as e:
        click.echo(f"Error: {e}", err=True)
        raise click.Abort()


@main.command()
@click.option(
    "--query",
    "query_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="SPARQL query file",
)
@click.option(
    "--input",
    "input_file",
    type=click.File("r", encoding="utf-8"),
    default="-",
    help="RDF/XML input (default: stdin)",
)
@click.option("--uri", default=None, help="Base URI of the input document")
@click.option("--format", "results_format", default="json", show_default=True)
@click.option(
    "--bind-literal",
    multiple=True,
    help="NAME=VALUE literal binding (repeatable)",
)
@click.option("--bind-uri", multiple=True, help="NAME=URI binding (repeatable)")
def sparql(
    query_file: str,
    input_file,
    uri: str | None,
    results_format: str,
    bind_literal: tuple[str, ...],
    bind_uri: tuple[str, ...],
) -> None:
    """Run a SELECT or CONSTRUCT query over an RDF/XML document.

    Example:
      ldpathjson sparql --query titles.rq --input abc.rdf --format csv
    """
    from .processors import RESOURCE_URI_HEADER, Message
    from .sparql import SparqlQueryProcessor

    headers: dict[str, str] = {}
    if uri:
        headers[RESOURCE_URI_HEADER] = uri
    for prefix, pairs in (("Literal", bind_literal), ("URI", bind_uri)):
        for pair in pairs:
            name, sep, value = pair.partition("=")
            if not sep:
                click.echo(f"Error: binding {pair!r} is not NAME=VALUE", err=True)
                raise click.Abort()
            headers[f"CamelSparqlQueryBinding-{prefix}-{name}"] = value

    processor = SparqlQueryProcessor(
        Path(query_file).read_text(encoding="utf-8"), results_format,
    )
    try:
        message = processor.process(Message(headers=headers, body=input_file.read()))
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        raise click.Abort()
    click.echo(message.body, nl=False)


if __name__ == "__main__":
    main()
