import click
from relay import create_app, socketio

app = create_app()


@click.command()
@click.option('--host', default=lambda: app.config['HOST'], show_default='HOST or 0.0.0.0')
@click.option('--port', type=int, default=lambda: app.config['PORT'], show_default='PORT or 3000')
@click.option('--debug', is_flag=True, help='Run with the Flask debugger and reloader.')
def serve(host, port, debug):
    """Run the relay server with Socket.IO enabled."""
    click.echo(f"\nHextris relay running on http://localhost:{port}")
    click.echo("Share this URL with players on other machines.\n")
    socketio.run(app, host=host, port=port, debug=debug, allow_unsafe_werkzeug=debug)


if __name__ == '__main__':
    serve()
