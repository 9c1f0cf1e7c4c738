import logging
import subprocess
from typing import List, Optional, Sequence, Tuple

import docker

from ..exceptions import CommandExecutionError

logger = logging.getLogger(__name__)


class CommandExecutor:
    """
    Run an external command synchronously.

    Implementations return (exit_code, output) with stdout and stderr combined,
    and raise CommandExecutionError when the command could not be run at all.
    """

    def __init__(self, use_sudo: bool = False):
        self.use_sudo = use_sudo

    def _argv(self, args: Sequence[str]) -> List[str]:
        argv = [str(a) for a in args]
        if self.use_sudo:
            argv.insert(0, "sudo")
        return argv

    def run(self, args: Sequence[str]) -> Tuple[int, str]:
        raise NotImplementedError


class LocalExecutor(CommandExecutor):
    """Execute commands on this host"""

    def __init__(self, use_sudo: bool = False, timeout: Optional[float] = None):
        super().__init__(use_sudo=use_sudo)
        self.timeout = timeout

    def run(self, args: Sequence[str]) -> Tuple[int, str]:
        argv = self._argv(args)
        logger.debug(f"exec: {' '.join(argv)}")
        try:
            result = subprocess.run(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            output = (e.output or b"").decode('utf-8', errors='replace')
            raise CommandExecutionError(
                f"command timed out after {self.timeout}s: {' '.join(argv)}, output: {output}",
                output=output,
            )
        except OSError as e:
            raise CommandExecutionError(f"failed to execute {argv[0]}: {e}")

        return result.returncode, result.stdout.decode('utf-8', errors='replace')


class DockerExecutor(CommandExecutor):
    """Execute commands inside a Docker container (e.g. a lab router)"""

    def __init__(self, container_name: str = "router", use_sudo: bool = False, client=None):
        super().__init__(use_sudo=use_sudo)
        self.container_name = container_name
        self.client = client or docker.from_env()
        self._container = None

    def get_container(self):
        """Get target container (cached)"""
        if not self._container:
            try:
                self._container = self.client.containers.get(self.container_name)
            except docker.errors.NotFound:
                raise CommandExecutionError(
                    f"container '{self.container_name}' not found. Is it running?"
                )
        return self._container

    def run(self, args: Sequence[str]) -> Tuple[int, str]:
        argv = self._argv(args)
        container = self.get_container()
        logger.debug(f"exec in {self.container_name}: {' '.join(argv)}")
        try:
            result = container.exec_run(argv)
        except docker.errors.APIError as e:
            raise CommandExecutionError(f"failed to execute command in '{self.container_name}': {e}")
        return result.exit_code, result.output.decode('utf-8', errors='replace')


def build_executor(settings) -> CommandExecutor:
    """Pick the executor named by configuration"""
    if settings.executor == "docker":
        return DockerExecutor(container_name=settings.container, use_sudo=settings.use_sudo)
    if settings.executor != "local":
        logger.warning(f"Unknown executor '{settings.executor}', falling back to local")
    return LocalExecutor(use_sudo=settings.use_sudo, timeout=settings.command_timeout)
