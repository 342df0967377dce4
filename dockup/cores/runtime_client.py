"""
Docker runtime client for dockup.

Thin adapter over the Docker Engine API. Every other component talks to
Docker only through this class, and docker SDK exceptions never leave it:
they are translated into dockup errors.
"""

from typing import Any, Dict, List, Optional, Sequence, Union

import docker
from docker.errors import APIError, DockerException, ImageNotFound, NotFound

from ..helpers.constants import BACKUP_OPERATION_TIMEOUT, HELPER_LABEL
from ..helpers.errors import NotFoundError, RuntimeFailure
from ..helpers.logging import get_logger
from ..types import ContainerSpec

logger = get_logger(__name__)

# Mount table: source (volume name or host path) -> {"bind": path, "mode": "rw"|"ro"}
Mounts = Dict[str, Dict[str, str]]


class RuntimeClient:
    """
    Calls into the Docker daemon on behalf of dockup.

    Helper containers created by run_ephemeral() and commit_ephemeral() are
    always force-removed before the call returns.
    """

    def __init__(self, client: Optional[docker.DockerClient] = None,
                 docker_host: Optional[str] = None,
                 timeout: int = BACKUP_OPERATION_TIMEOUT):
        """
        Initialize runtime client.

        Args:
            client: Existing docker client (tests inject a mock here)
            docker_host: Daemon URL; the environment decides when omitted
            timeout: Seconds to wait for a helper container
        """
        self.timeout = timeout
        if client is not None:
            self.client = client
            return
        try:
            if docker_host:
                self.client = docker.DockerClient(base_url=docker_host)
            else:
                self.client = docker.from_env()
        except DockerException as e:
            raise RuntimeFailure("Docker daemon not accessible", stderr=str(e)) from e

    # --------------- Volumes ---------------

    def volume_exists(self, name: str) -> bool:
        try:
            self.client.volumes.get(name)
            return True
        except NotFound:
            return False
        except APIError as e:
            raise _failure(f"Cannot inspect volume {name}", e) from e

    def create_volume(self, name: str) -> None:
        try:
            self.client.volumes.create(name=name)
            logger.info(f"Created volume {name}", extra={'volume': name})
        except APIError as e:
            raise _failure(f"Cannot create volume {name}", e) from e

    # --------------- Images ---------------

    def image_exists(self, image: str) -> bool:
        try:
            self.client.images.get(image)
            return True
        except ImageNotFound:
            return False
        except APIError as e:
            raise _failure(f"Cannot inspect image {image}", e) from e

    def ensure_image(self, image: str) -> None:
        """Pull an image unless it is already present locally."""
        if self.image_exists(image):
            return
        logger.info(f"Pulling image {image}...")
        try:
            self.client.images.pull(image)
        except ImageNotFound as e:
            raise NotFoundError(f"Image not found: {image}") from e
        except APIError as e:
            raise _failure(f"Cannot pull image {image}", e) from e

    # --------------- Containers ---------------

    def inspect_container(self, name: str) -> Dict[str, Any]:
        """
        Return the full inspect record of a container.

        Raises:
            NotFoundError: If the container does not exist
        """
        try:
            return self.client.containers.get(name).attrs
        except NotFound as e:
            raise NotFoundError(f"Container not found: {name}") from e
        except APIError as e:
            raise _failure(f"Cannot inspect container {name}", e) from e

    def list_container_names(self) -> List[str]:
        """Names of all containers, running or stopped, sorted."""
        try:
            containers = self.client.containers.list(all=True)
        except APIError as e:
            raise _failure("Cannot list containers", e) from e
        return sorted(c.name for c in containers)

    def create_container(self, spec: ContainerSpec) -> str:
        """
        Create (but do not start) a container, pulling its image if needed.

        Returns:
            ID of the new container
        """
        kwargs = spec.to_create_kwargs()
        image = kwargs.pop("image")
        self.ensure_image(image)
        try:
            container = self.client.containers.create(image, **kwargs)
        except ImageNotFound as e:
            raise NotFoundError(f"Image not found: {image}") from e
        except APIError as e:
            raise _failure(f"Cannot create container {spec.name}", e) from e
        logger.info(f"Created container {spec.name} ({container.short_id})",
                    extra={'container': spec.name})
        return container.id

    def run_ephemeral(self, image: str, command: Union[str, Sequence[str]],
                      mounts: Mounts, privileged: bool = False) -> str:
        """
        Run a helper container to completion and remove it.

        Args:
            image: Image to run
            command: Command for the container
            mounts: Volume/bind table in docker SDK format
            privileged: Run with extended privileges

        Returns:
            Combined container output

        Raises:
            RuntimeFailure: On non-zero exit, timeout or API error
        """
        container = self._create_helper(image, command, mounts, privileged)
        try:
            exit_code, output = self._start_and_wait(container)
        finally:
            self._force_remove(container)
        if exit_code != 0:
            raise RuntimeFailure(f"Helper container ({image}) failed", exit_code, output)
        return output

    def commit_ephemeral(self, image: str, command: Union[str, Sequence[str]],
                         mounts: Mounts, repository: str, tag: Optional[str] = None) -> str:
        """
        Run a helper container, then commit its filesystem as an image.

        Mounted volumes are not part of a commit; only what the command
        copied into the container's own filesystem is kept.

        Returns:
            ID of the committed image
        """
        container = self._create_helper(image, command, mounts, privileged=False)
        try:
            exit_code, output = self._start_and_wait(container)
            if exit_code != 0:
                raise RuntimeFailure(f"Helper container ({image}) failed", exit_code, output)
            try:
                committed = container.commit(repository=repository, tag=tag)
            except APIError as e:
                raise _failure(f"Cannot commit helper container to {repository}", e) from e
        finally:
            self._force_remove(container)
        logger.info(f"Committed image {repository}{':' + tag if tag else ''}")
        return committed.id

    # --------------- Private Methods ---------------

    def _create_helper(self, image, command, mounts: Mounts, privileged: bool):
        self.ensure_image(image)
        try:
            return self.client.containers.create(
                image,
                command=command,
                volumes=mounts,
                privileged=privileged,
                labels={HELPER_LABEL: "true"},
            )
        except APIError as e:
            raise _failure(f"Cannot create helper container from {image}", e) from e

    def _start_and_wait(self, container):
        try:
            container.start()
            result = container.wait(timeout=self.timeout)
            output = container.logs(stdout=True, stderr=True).decode("utf-8", errors="replace")
        except APIError as e:
            raise _failure("Helper container failed", e) from e
        except DockerException as e:
            raise RuntimeFailure("Helper container failed", stderr=str(e)) from e
        except OSError as e:
            # requests timeouts and connection errors derive from OSError
            raise RuntimeFailure(
                f"Helper container did not finish within {self.timeout}s", stderr=str(e)
            ) from e
        return result.get("StatusCode", 1), output

    def _force_remove(self, container) -> None:
        try:
            container.remove(force=True)
        except NotFound:
            pass
        except APIError as e:
            logger.warning(f"Could not remove helper container {container.short_id}: {e}")


def _failure(message: str, error: APIError) -> RuntimeFailure:
    """Translate a docker API error, keeping status and explanation verbatim."""
    return RuntimeFailure(message, getattr(error, "status_code", None),
                          getattr(error, "explanation", None) or str(error))
