"""Main entry point for the AI Coach application."""

import logging

import click

from .config.models import ModelRegistry
from .core.config_paths import ConfigPaths


def _validate_model(ctx, param, value):
    if value is None:
        return None
    valid, error = ModelRegistry.validate_model_id(value)
    if not valid:
        raise click.BadParameter(error)
    return ModelRegistry.get_by_id(value).api_id


def _configure_logging(debug: bool) -> None:
    """Log to a file so output does not corrupt the terminal UI."""
    logging.basicConfig(
        filename=ConfigPaths.get_log_file(),
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@click.command()
@click.option(
    '--debug',
    is_flag=True,
    help='Enable debug mode'
)
@click.option(
    '--model',
    callback=_validate_model,
    default=None,
    help='Gemini model to chat with (e.g. gemini-2.5-flash)'
)
@click.option(
    '--voice/--no-voice',
    default=None,
    help='Narrate replies with speech synthesis'
)
@click.option(
    '--api-key-dialog/--no-api-key-dialog',
    default=True,
    help='Offer to select an API key when none is set in the environment'
)
def main(debug: bool, model, voice, api_key_dialog: bool) -> None:
    """Launch the AI Coach, a friendly probability tutor in your terminal."""
    import os
    import sys

    if debug:
        os.environ['TEXTUAL_DEBUG'] = '1'
    _configure_logging(debug)

    try:
        from .app import CoachApp
        app = CoachApp(
            model_id=model,
            voice_mode=voice,
            use_key_dialog=api_key_dialog,
        )
        app.run()

    except KeyboardInterrupt:
        click.echo("\nExiting...")
        sys.exit(0)
    except Exception as e:
        if debug:
            raise
        else:
            click.echo(click.style(f"Error: {e}", fg='red'))
            sys.exit(1)


if __name__ == "__main__":
    main()
