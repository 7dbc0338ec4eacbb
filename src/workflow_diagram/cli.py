"""
Workflow Diagram CLI
"""
import logging
import sys
from pathlib import Path

import click
from dotenv import load_dotenv

from .config import DiagramConfig, get_log_level, get_server_settings
from .core.parser import WorkflowParser
from .diagram.facade import WorkflowDiagram
from .exceptions import WorkflowDiagramError
from . import utils


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


@click.group()
@click.option('--log-level', default=None, help='Logging level (defaults to LOG_LEVEL or INFO)')
def cli(log_level):
    """Workflow Diagram CLI"""
    load_dotenv()
    logging.basicConfig(level=(log_level or get_log_level()).upper(), format=LOG_FORMAT, stream=sys.stderr)


@cli.command()
@click.argument('workflow_file', type=click.Path(exists=True, dir_okay=False))
@click.option('-o', '--output', type=click.Path(dir_okay=False), help='Write SVG to file instead of stdout')
@click.option('--legend/--no-legend', default=None, help='Draw the edge legend')
def render(workflow_file, output, legend):
    """Render a workflow file as an SVG diagram"""
    try:
        workflow = WorkflowParser().parse_file(Path(workflow_file))
        diagram = WorkflowDiagram(workflow, config=DiagramConfig.from_env(), show_legend=legend)
        svg = diagram.get_svg_diagram()
    except WorkflowDiagramError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if output:
        Path(output).write_text(svg, encoding='utf-8')
        click.echo(f"Wrote {output}", err=True)
    else:
        click.echo(svg)


@cli.command()
@click.argument('workflow_file', type=click.Path(exists=True, dir_okay=False))
def validate(workflow_file):
    """Validate a workflow file and print a summary"""
    try:
        workflow = WorkflowParser().parse_file(Path(workflow_file))
        graph = WorkflowDiagram(workflow).build_graph()
    except WorkflowDiagramError as e:
        click.echo(f"Invalid workflow: {e}", err=True)
        sys.exit(1)

    starting_state = utils.get_starting_state(workflow)
    click.echo(f"Workflow: {workflow.name} ({workflow.id}) v{workflow.version}")
    click.echo(f"States: {len(workflow.states)}")
    click.echo(f"Starting state: {starting_state.name if starting_state else '-'}")
    click.echo(f"Consumed events: {utils.get_workflow_consumed_events_count(workflow)}")
    click.echo(f"Produced events: {utils.get_workflow_produced_events_count(workflow)}")
    click.echo(f"Graph: {len(graph.nodes)} nodes, {len(graph.edges)} edges, {len(graph.back_edges)} loop(s)")


@cli.command()
@click.option('--host', default=None, help='Host to bind to')
@click.option('--port', default=None, type=int, help='Port to bind to')
@click.option('--reload', is_flag=True, help='Enable auto-reload')
def serve(host, port, reload):
    """Start the API server"""
    import uvicorn

    settings = get_server_settings()
    host = host or settings["host"]
    port = port or settings["port"]

    click.echo(f"Starting API server on {host}:{port}")
    uvicorn.run(
        "workflow_diagram.api:app",
        host=host,
        port=port,
        reload=reload or settings["reload"]
    )


def main():
    """Main entry point"""
    cli()


if __name__ == '__main__':
    main()
