"""Drives docker-compose to build the package image and start the container."""

from collections.abc import Sequence
from pathlib import Path
import subprocess

from pyvider.telemetry import logger

from .exceptions import OrchestrationError

COMMAND_NOT_FOUND = 127


class ComposeOrchestrator:
    def __init__(
        self,
        compose_command: Sequence[str],
        compose_file: Path,
        working_dir: Path,
    ) -> None:
        self.compose_command = list(compose_command)
        self.compose_file = compose_file
        self.working_dir = working_dir

    def _compose(self, *args: str) -> list[str]:
        return [*self.compose_command, "-f", str(self.compose_file), *args]

    def _run_subprocess(self, command: list[str]) -> subprocess.CompletedProcess[str]:
        logger.info(f"Running command: {' '.join(command)}")
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                cwd=self.working_dir,
                check=False,
            )
        except FileNotFoundError as e:
            raise OrchestrationError(
                f"Compose command not found: {command[0]}", COMMAND_NOT_FOUND
            ) from e
        if result.stderr:
            logger.debug("Command stderr", output=result.stderr.strip())
        return result

    def remove_containers(self, remove_volumes: bool) -> None:
        """Tears down the containers and, optionally, the volumes they own."""
        args = ["down", "--remove-orphans"]
        if remove_volumes:
            args.append("--volumes")
        result = self._run_subprocess(self._compose(*args))
        if result.returncode != 0:
            raise OrchestrationError(
                f"Command failed with exit code {result.returncode}.\n"
                f"  Command: {' '.join(result.args)}\n"
                f"  Stderr:\n{result.stderr.strip()}",
                result.returncode,
            )

    def run(self, rebuild: bool) -> int:
        """
        Starts the container detached. With `rebuild`, previous container and
        volume state is torn down and the image is rebuilt first. Returns the
        exit code of the final `up` command.
        """
        if rebuild:
            logger.info("Rebuild requested, tearing down previous container state")
            self.remove_containers(remove_volumes=True)
            result = self._run_subprocess(self._compose("up", "--build", "-d"))
        else:
            result = self._run_subprocess(self._compose("up", "-d"))

        if result.returncode != 0:
            logger.error(
                "Compose failed",
                exit_code=result.returncode,
                stderr=result.stderr.strip(),
            )
        return result.returncode


def inspect_hint(container_name: str) -> str:
    """Instructions for inspecting and removing the running container."""
    return (
        f"Log in to the container to check the packages unpacked as expected:\n"
        f"  docker exec -it {container_name} /bin/bash\n"
        f"Shut it down (add -v to also remove its volumes) with:\n"
        f"  docker-compose down"
    )
