from __future__ import annotations

from typing import Mapping, Protocol, runtime_checkable

from ssr_operator.models import EnvironmentLabels


@runtime_checkable
class ResourceProvisioner(Protocol):
    """Cluster-facing operations the request processor delegates to.

    Implementations own the deployments, routes and config maps of an
    environment. The processor holds no locks around these calls, so an
    implementation must tolerate concurrent calls on disjoint targets.
    """

    def create_new_environment(self, *, parameters: Mapping[str, str], namespace: str | None) -> bool:
        ...

    def update_environment(self, *, deployment_name: str, image_url: str | None, namespace: str | None) -> None:
        ...

    def delete_existing_environment(self, *, parameters: Mapping[str, str], namespace: str | None) -> bool:
        ...

    def update_config_map_of(
        self,
        *,
        labels: EnvironmentLabels,
        config_map: Mapping[str, str],
        namespace: str | None,
    ) -> bool:
        ...
