import typer
import uvicorn

from oidc_bridge.api.http.app import create_app
from oidc_bridge.api.http.app_data import ApplicationDependencies

from .context import console, get_state


def serve(
    ctx: typer.Context,
    host: str | None = typer.Option(None, help="Host to bind, defaults to app.host"),
    port: int | None = typer.Option(None, help="Port to bind, defaults to app.port"),
) -> None:
    """Run the HTTP login endpoints."""
    state = get_state(ctx)
    app = create_app(ApplicationDependencies.from_config(state.config))
    host = host or state.config.app.host
    port = port or state.config.app.port

    console.print(f"[blue]Server will be available at:[/blue] http://{host}:{port}")
    # Request logging happens in middleware
    uvicorn.run(app, host=host, port=port, access_log=False)
