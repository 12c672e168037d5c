"""The `unpack-deb` command-line interface."""

import sys

import click
from pyvider.telemetry import logger

from .arguments import PROG_NAME, parse_args
from .config import load_config
from .exceptions import DebUnpackError
from .orchestrator import ComposeOrchestrator, inspect_hint
from .scaffolding.generator import render_compose_assets
from .signals import install_signal_handlers
from .staging import stage_package_files


class RawTokenCommand(click.Command):
    """
    Hands every command-line token to the callback untouched, `--` included.
    Only a leading help flag is parsed by click.
    """

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        if args and args[0] in ctx.help_option_names:
            return super().parse_args(ctx, args)
        ctx.params["tokens"] = tuple(args)
        ctx.args = []
        return ctx.args


def _report(error: DebUnpackError) -> None:
    logger.error(f"{type(error).__name__}: {error}", exit_code=error.exit_code)
    click.secho(f"❌ {error}", fg="red", err=True)


@click.command(
    PROG_NAME,
    cls=RawTokenCommand,
    context_settings=dict(
        help_option_names=["-h", "--help"],
        ignore_unknown_options=True,
    ),
)
@click.argument("tokens", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def cli(ctx: click.Context, tokens: tuple[str, ...]) -> None:
    """Stages .deb files and starts a container that installs them.

    \b
    Options:
      -l <local_deb_files>...   Local .deb files to unpack.
      -r <remote_deb_files>...  Remote .deb files to download and unpack.
      -b                        Tear down previous container state and
                                rebuild the image from scratch.

    At least one file must be given with -l or -r, or through the
    LOCAL_DEB_FILES / REMOTE_DEB_FILES environment variables.
    """
    try:
        config = load_config()
        request = parse_args(tokens, config.defaults)

        click.echo(f"🚀 Staging {request.package_count} package file(s)...")
        staged = stage_package_files(request, config.build_dir, config.working_dir)
        for path in staged:
            click.echo(f"  {path.name}")

        compose_file = config.resolved_compose_file()
        if not compose_file.exists():
            compose_file = render_compose_assets(
                config.build_dir,
                container_name=config.container_name,
                base_image=config.base_image,
            )

        orchestrator = ComposeOrchestrator(
            compose_command=config.compose_command,
            compose_file=compose_file,
            working_dir=config.working_dir,
        )
        exit_code = orchestrator.run(request.rebuild)
    except DebUnpackError as e:
        _report(e)
        ctx.exit(e.exit_code)

    if exit_code != 0:
        click.secho(
            f"❌ docker-compose failed with exit code {exit_code}.", fg="red", err=True
        )
        ctx.exit(exit_code)

    click.secho(f"✅ Container '{config.container_name}' is up.", fg="green")
    click.echo(inspect_hint(config.container_name))


def main() -> None:
    install_signal_handlers()
    try:
        cli()
    except DebUnpackError as e:
        _report(e)
        sys.exit(e.exit_code)
