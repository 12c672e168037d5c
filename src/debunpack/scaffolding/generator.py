"""Renders default Docker build assets for the staged packages."""

from pathlib import Path

import jinja2
from pyvider.telemetry import logger

from ..config import COMPOSE_FILE_NAME

_TEMPLATE_DIR = Path(__file__).parent / "templates"
DOCKERFILE_NAME = "Dockerfile"


def _get_template_env() -> jinja2.Environment:
    return jinja2.Environment(
        loader=jinja2.FileSystemLoader(_TEMPLATE_DIR),
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=jinja2.StrictUndefined,
    )


def render_compose_assets(
    build_dir: Path, *, container_name: str, base_image: str
) -> Path:
    """
    Writes a Dockerfile that installs every staged .deb and a
    docker-compose.yml running it as `container_name`. An existing
    Dockerfile is left alone. Returns the compose file path.
    """
    env = _get_template_env()

    dockerfile_path = build_dir / DOCKERFILE_NAME
    if not dockerfile_path.exists():
        dockerfile = env.get_template(f"{DOCKERFILE_NAME}.j2").render(
            base_image=base_image
        )
        dockerfile_path.write_text(dockerfile)

    compose_path = build_dir / COMPOSE_FILE_NAME
    compose = env.get_template(f"{COMPOSE_FILE_NAME}.j2").render(
        container_name=container_name
    )
    compose_path.write_text(compose)
    logger.info(f"Rendered default compose assets in {build_dir}")
    return compose_path
