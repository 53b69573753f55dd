from __future__ import annotations

from concurrent.futures import Executor, Future
import functools
import logging
from typing import Any, Callable

from ssr_operator.executors import default_executor
from ssr_operator.logging_config import environment_context
from ssr_operator.models import (
    ACCESS_URL_KEY,
    STATUS_DELETED,
    STATUS_KEY,
    STATUS_PROVISIONED,
    STATUS_UPDATED,
    EnvironmentDescriptor,
    ProvisionStage,
)
from ssr_operator.provisioner import ResourceProvisioner
from ssr_operator.services.access_url import build_access_url, check_url_parameters
from ssr_operator.services.errors import (
    ConfigMapUpdateException,
    DeletionException,
    ProvisioningException,
)

logger = logging.getLogger(__name__)

Outcome = dict[str, Any]


def _tagged_with_environment(step: Callable[..., Outcome]) -> Callable[..., Outcome]:
    @functools.wraps(step)
    def wrapper(self: SsrRequestProcessor, descriptor: EnvironmentDescriptor) -> Outcome:
        with environment_context(descriptor.log_label()):
            return step(self, descriptor)

    return wrapper


class SsrRequestProcessor:
    """Run environment lifecycle requests against a resource provisioner.

    The ``process_*`` methods submit work to the executor and return a future
    holding the outcome mapping or the typed failure. Each request runs start
    to finish on a single worker. Requests for the same environment are not
    serialized here.
    """

    def __init__(
        self,
        *,
        provisioner: ResourceProvisioner,
        executor: Executor | None = None,
        validate_url_parameters: bool = False,
    ) -> None:
        self._provisioner = provisioner
        self._executor = executor or default_executor()
        self._validate_url_parameters = validate_url_parameters

    def process_provision_request(self, descriptor: EnvironmentDescriptor) -> Future[Outcome]:
        return self._executor.submit(self.provision, descriptor)

    def process_update_request(self, descriptor: EnvironmentDescriptor) -> Future[Outcome]:
        return self._executor.submit(self.update, descriptor)

    def process_delete_request(self, descriptor: EnvironmentDescriptor) -> Future[Outcome]:
        return self._executor.submit(self.delete, descriptor)

    def process_config_update_request(self, descriptor: EnvironmentDescriptor) -> Future[Outcome]:
        return self._executor.submit(self.update_config_map, descriptor)

    @_tagged_with_environment
    def provision(self, descriptor: EnvironmentDescriptor) -> Outcome:
        """Apply the config map when one is given, then create the environment.

        A failing config map step aborts before anything is created. The
        access URL is built after the create call, so a missing parameter
        fails the request with the environment already created unless
        ``validate_url_parameters`` is set.
        """
        parameters = descriptor.to_template_parameters()
        stage = ProvisionStage.PENDING
        try:
            if self._validate_url_parameters:
                check_url_parameters(parameters)

            if descriptor.has_config_map():
                config_outcome = self.update_config_map(descriptor)
                logger.info("Config map create or update status is as follows %s", config_outcome)
            else:
                logger.debug("No config map supplied for %s, skipping config map step", descriptor.log_label())
            stage = ProvisionStage.CONFIG_APPLIED

            created = self._provisioner.create_new_environment(
                parameters=parameters,
                namespace=descriptor.namespace,
            )
            if not created:
                raise ProvisioningException(f"Failed to provision resource: {descriptor}")
            stage = ProvisionStage.PROVISIONED

            access_url = build_access_url(parameters)
            logger.info("Constructed access url is %s", access_url)
        except Exception:
            logger.warning("Provisioning of %s stopped after stage %s", descriptor.log_label(), stage.value)
            raise
        return {STATUS_KEY: STATUS_PROVISIONED, ACCESS_URL_KEY: access_url}

    @_tagged_with_environment
    def update(self, descriptor: EnvironmentDescriptor) -> Outcome:
        """Roll the deployment to the descriptor's image.

        The provisioner's own result is not inspected: any call that returns
        without raising reports ``updated``.
        """
        logger.info("Processing update request %s", descriptor)
        deployment_name = descriptor.deployment_name()
        logger.info("Computed deployment name is %s", deployment_name)
        self._provisioner.update_environment(
            deployment_name=deployment_name,
            image_url=descriptor.image_url,
            namespace=descriptor.namespace,
        )
        return {STATUS_KEY: STATUS_UPDATED}

    @_tagged_with_environment
    def delete(self, descriptor: EnvironmentDescriptor) -> Outcome:
        parameters = descriptor.to_template_parameters()
        deleted = self._provisioner.delete_existing_environment(
            parameters=parameters,
            namespace=descriptor.namespace,
        )
        if not deleted:
            logger.warning("Provisioner reported failure deleting %s", descriptor.log_label())
            raise DeletionException(f"Failed to delete resource: {descriptor}")
        logger.info("Deleted environment %s", descriptor.log_label())
        return {STATUS_KEY: STATUS_DELETED}

    @_tagged_with_environment
    def update_config_map(self, descriptor: EnvironmentDescriptor) -> Outcome:
        labels = descriptor.labels()
        updated = self._provisioner.update_config_map_of(
            labels=labels,
            config_map=descriptor.config_map,
            namespace=descriptor.namespace,
        )
        if not updated:
            logger.warning("Provisioner reported failure updating config map for labels %s", labels)
            raise ConfigMapUpdateException(f"Failed to update resource: {descriptor}")
        return {STATUS_KEY: STATUS_UPDATED}
