import asyncio

import typer

from opsbot.app import main as app_main
from opsbot.core.config import Config
from opsbot.core.errors import ClassificationFault, ConfigurationError

app = typer.Typer(help="opsbot CLI")


@app.command("run")
def run_bot():
    """Run opsbot in interactive mode."""
    asyncio.run(app_main())


@app.command("config")
def show_config():
    """Print the effective configuration."""
    Config.print_config()


@app.command("nlu:classify")
def nlu_classify(text: str):
    """Classify TEXT with the configured NLU adapter and print intents and entities."""
    from opsbot.core.nlu.nlu import NLU

    try:
        nlu = NLU(Config.get_nlu_adapter())
        result = asyncio.run(nlu.classify(text))
    except (ConfigurationError, ClassificationFault) as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(code=1)

    if not result.intents:
        typer.echo("(no intents)")
    for intent in result.intents:
        typer.echo(f"intent  {intent.score:.2f}  {intent.name}")
    for entity in result.entities:
        typer.echo(f"entity  {entity.score:.2f}  {entity.type} = {entity.value}")


@app.command("server")
def server(
    host: str = typer.Option(None, "--host", "-H", help="Host to bind to"),
    port: int = typer.Option(None, "--port", "-p", help="Port to bind to"),
):
    """Start opsbot behind the HTTP API."""
    import logging
    import uvicorn
    from contextlib import asynccontextmanager
    from opsbot.core.bus import Bus
    from opsbot.app import build_engine
    from opsbot.server import create_app

    if host:
        Config.SERVER_HOST = host
    if port:
        Config.SERVER_PORT = port

    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(name)s: %(message)s")
    bus = Bus()

    @asynccontextmanager
    async def lifespan(app_instance):
        typer.echo(f"Starting HTTP server on {Config.SERVER_HOST}:{Config.SERVER_PORT}")
        typer.echo("API endpoints available at:")
        typer.echo("   - POST   /api/conversations/{id}/messages")
        typer.echo("   - DELETE /api/conversations/{id}")
        typer.echo("   - GET    /health")
        app_instance.state.manager = await build_engine(bus)
        yield
        typer.echo("\nStopping server...")
        await app_instance.state.manager.stop()

    uvicorn.run(
        create_app(lifespan=lifespan),
        host=Config.SERVER_HOST,
        port=Config.SERVER_PORT,
        log_level="info",
    )


if __name__ == "__main__":
    app()
