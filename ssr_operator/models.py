from __future__ import annotations

from enum import Enum
import logging
from types import MappingProxyType
from typing import Any, Mapping, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from ssr_operator import config
from ssr_operator.services.errors import MissingIdentityException

logger = logging.getLogger(__name__)

ROUTER_DOMAIN_PROPERTY = "operator.domain.name"

PARAM_IMAGE_URL = "IMAGE-URL"
PARAM_APP = "APP"
PARAM_CONTEXT_PATH = "CONTEXT-PATH"
PARAM_HEALTH_CHECK_PATH = "HEALTH-CHECK-PATH"
PARAM_WEBSITE = "WEBSITE"
PARAM_ENV = "ENV"
PARAM_ROUTER_DOMAIN = "ROUTER-DOMAIN"

STATUS_KEY = "status"
ACCESS_URL_KEY = "accessUrl"
STATUS_PROVISIONED = "provisioned"
STATUS_UPDATED = "updated"
STATUS_DELETED = "deleted"


class ProvisionStage(str, Enum):
    PENDING = "pending"
    CONFIG_APPLIED = "config-applied"
    PROVISIONED = "provisioned"


class EnvironmentLabels(NamedTuple):
    """Label selector triple identifying the config map of an environment."""

    website: Optional[str]
    app: Optional[str]
    environment: Optional[str]


class TemplateParameters(dict):
    """Template parameters derived from a descriptor.

    Behaves as a plain ``dict[str, str]`` towards the provisioner. Keys that
    ambient configuration failed to supply are left out and their resolution
    error is kept in ``unresolved``.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.unresolved: dict[str, Exception] = {}


class EnvironmentDescriptor(BaseModel):
    """One environment request.

    The model is frozen and ``config_map`` is exposed as a read-only mapping,
    so a descriptor cannot change after validation.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    namespace: Optional[str] = Field(default=None, alias="nameSpace")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    app: Optional[str] = None
    context_path: Optional[str] = Field(default=None, alias="contextPath")
    health_check_path: Optional[str] = Field(default=None, alias="healthCheckPath")
    website: Optional[str] = None
    environment: Optional[str] = None
    config_map: Mapping[str, str] = Field(default_factory=dict, alias="configMap")

    @field_validator("config_map", mode="before")
    @classmethod
    def _none_config_map_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("config_map")
    @classmethod
    def _read_only_config_map(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(value))

    @field_serializer("config_map")
    def _serialize_config_map(self, value: Mapping[str, str]) -> dict[str, str]:
        return dict(value)

    def __hash__(self) -> int:
        return hash(
            (
                self.namespace,
                self.image_url,
                self.app,
                self.context_path,
                self.health_check_path,
                self.website,
                self.environment,
                frozenset(self.config_map.items()),
            )
        )

    def __str__(self) -> str:
        return (
            f"EnvironmentDescriptor[namespace={self.namespace}, image_url={self.image_url}, "
            f"app={self.app}, context_path={self.context_path}, "
            f"health_check_path={self.health_check_path}, website={self.website}, "
            f"environment={self.environment}, config_map={dict(self.config_map)}]"
        )

    def has_config_map(self) -> bool:
        return bool(self.config_map)

    def labels(self) -> EnvironmentLabels:
        return EnvironmentLabels(website=self.website, app=self.app, environment=self.environment)

    def log_label(self) -> str:
        """Identify the environment in log lines, tolerating missing fields."""
        return f"{self.namespace}/{self.website}-{self.app}-{self.environment}"

    def deployment_name(self) -> str:
        missing = [
            name
            for name, value in (("website", self.website), ("app", self.app), ("environment", self.environment))
            if not value
        ]
        if missing:
            raise MissingIdentityException(f"Cannot compute deployment name for {self}", missing=missing)
        return f"{self.website}-{self.app}-{self.environment}"

    def to_template_parameters(self) -> TemplateParameters:
        """Derive the template parameters, resolving the router domain at call time."""
        params = TemplateParameters()
        fields = (
            (PARAM_IMAGE_URL, self.image_url),
            (PARAM_APP, self.app),
            (PARAM_CONTEXT_PATH, self.context_path),
            (PARAM_HEALTH_CHECK_PATH, self.health_check_path),
            (PARAM_WEBSITE, self.website),
            (PARAM_ENV, self.environment),
        )
        for key, value in fields:
            if value is not None:
                params[key] = value

        router_domain = self.fetch_router_domain(unresolved=params.unresolved)
        if router_domain is not None:
            params[PARAM_ROUTER_DOMAIN] = router_domain
        return params

    def fetch_router_domain(self, *, unresolved: dict[str, Exception] | None = None) -> str | None:
        """Return the configured router domain, or ``None`` when it cannot be resolved.

        The failure is logged and, when ``unresolved`` is given, recorded there
        under ``ROUTER-DOMAIN``.
        """
        try:
            return config.get_value(ROUTER_DOMAIN_PROPERTY)
        except Exception as exc:
            logger.error("Failed to fetch the value of property %s due to %s", ROUTER_DOMAIN_PROPERTY, exc)
            if unresolved is not None:
                unresolved[PARAM_ROUTER_DOMAIN] = exc
            return None
