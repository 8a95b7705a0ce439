import json
import logging
from pathlib import Path
from typing import Optional

import typer

from vaultmap import boundary
from vaultmap.errors import VaultmapError
from vaultmap.pipeline import project_source
from vaultmap.settings import get_default_settings
from vaultmap.sources import EmbeddingSource, GraphSource, GraphType
from vaultmap.utils.config import get_logging_level, get_visualization_settings, load_config

app_cli = typer.Typer(help="Turn vault link graphs and embeddings into 3D coordinates and clusters")


def _fail(exc: VaultmapError) -> None:
    typer.echo(json.dumps(exc.to_dict()), err=True)
    raise typer.Exit(code=1)


@app_cli.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Configure logging for all commands."""
    ctx.obj = {"verbose": verbose}
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app_cli.command()
def adjacency(
    keys: Path = typer.Argument(..., exists=True, help="JSON list of note keys"),
    links: Path = typer.Argument(..., exists=True, help="JSON list of {fromId, toId} links"),
):
    """Print adjacency matrix rows."""
    try:
        typer.echo(boundary.build_adjacency_matrix(keys.read_text(), links.read_text()))
    except VaultmapError as exc:
        _fail(exc)


@app_cli.command()
def laplacian(
    keys: Path = typer.Argument(..., exists=True, help="JSON list of note keys"),
    links: Path = typer.Argument(..., exists=True, help="JSON list of {fromId, toId} links"),
):
    """Print out-degree Laplacian rows."""
    try:
        typer.echo(boundary.build_laplacian_matrix(keys.read_text(), links.read_text()))
    except VaultmapError as exc:
        _fail(exc)


@app_cli.command()
def reduce(
    vectors: Path = typer.Argument(..., exists=True, help="JSON list of vectors"),
    dims: int = typer.Option(3, help="Target dimensionality"),
):
    """Print SVD-reduced vectors."""
    try:
        typer.echo(boundary.reduce_dimensions_svd(vectors.read_text(), dims))
    except VaultmapError as exc:
        _fail(exc)


@app_cli.command()
def cluster(
    vectors: Path = typer.Argument(..., exists=True, help="JSON list of vectors"),
    k: int = typer.Option(3, "--k", help="Number of clusters"),
):
    """Print the k-means cluster index of every vector."""
    try:
        typer.echo(boundary.cluster_vectors(vectors.read_text(), k))
    except VaultmapError as exc:
        _fail(exc)


@app_cli.command()
def project(
    ctx: typer.Context,
    embeddings: Optional[Path] = typer.Option(None, exists=True, help="JSON object mapping note key to vector"),
    keys: Optional[Path] = typer.Option(None, exists=True, help="JSON list of note keys"),
    links: Optional[Path] = typer.Option(None, exists=True, help="JSON list of links"),
    graph_type: Optional[GraphType] = typer.Option(
        None, help="Graph matrix to vectorize [default: visualization.graph_type]"
    ),
    config: Optional[Path] = typer.Option(None, exists=True, help="YAML configuration file"),
):
    """Print projected points from embeddings or from a link graph."""
    try:
        cfg = load_config(str(config) if config else None)
    except (FileNotFoundError, ValueError) as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc
    verbose = (ctx.obj or {}).get("verbose", False)
    logging.getLogger("vaultmap").setLevel(logging.DEBUG if verbose else get_logging_level(cfg))
    try:
        settings = get_visualization_settings(cfg)
        if graph_type is None:
            graph_type = GraphType(settings.graph_type)
        if embeddings is not None:
            data = boundary.parse_embeddings(embeddings.read_text())
            source = EmbeddingSource(source_id=embeddings.stem, name=embeddings.name, embeddings=data)
        elif keys is not None and links is not None:
            source = GraphSource(
                source_id=graph_type.value,
                name=f"{graph_type.value} links",
                note_keys=boundary.parse_note_keys(keys.read_text()),
                links=boundary.parse_links(links.read_text()),
                graph_type=graph_type,
            )
        else:
            raise typer.BadParameter("pass --embeddings or both --keys and --links")
        points = project_source(source, settings)
    except VaultmapError as exc:
        _fail(exc)
    typer.echo(json.dumps([p.to_dict() for p in points]))


@app_cli.command("settings")
def show_settings():
    """Print the default visualization settings."""
    typer.echo(get_default_settings())


if __name__ == "__main__":
    app_cli()
