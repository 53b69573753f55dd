from __future__ import annotations

import logging
from typing import Mapping

from ssr_operator.models import PARAM_CONTEXT_PATH, PARAM_ENV, PARAM_ROUTER_DOMAIN, PARAM_WEBSITE
from ssr_operator.services.errors import MissingParameterException

logger = logging.getLogger(__name__)

REQUIRED_URL_PARAMETERS = (PARAM_WEBSITE, PARAM_ENV, PARAM_ROUTER_DOMAIN, PARAM_CONTEXT_PATH)


def check_url_parameters(parameters: Mapping[str, str]) -> None:
    """Raise when any parameter needed for the access URL is absent."""
    missing = [key for key in REQUIRED_URL_PARAMETERS if parameters.get(key) is None]
    if not missing:
        return
    unresolved = getattr(parameters, "unresolved", {})
    resolution_errors = {key: unresolved[key] for key in missing if key in unresolved}
    exc = MissingParameterException(
        "website or env or domain is missing",
        missing=missing,
        resolution_errors=resolution_errors,
    )
    if resolution_errors:
        raise exc from next(iter(resolution_errors.values()))
    raise exc


def build_access_url(parameters: Mapping[str, str]) -> str:
    """Return ``https://<website>-<env>.<router domain><context path>``.

    Values are used verbatim, no encoding or validation is applied.
    """
    logger.info(
        "<website>-<env>.<routedomain><context path> %s-%s.%s%s",
        parameters.get(PARAM_WEBSITE),
        parameters.get(PARAM_ENV),
        parameters.get(PARAM_ROUTER_DOMAIN),
        parameters.get(PARAM_CONTEXT_PATH),
    )
    check_url_parameters(parameters)
    return (
        "https://"
        + parameters[PARAM_WEBSITE]
        + "-"
        + parameters[PARAM_ENV]
        + "."
        + parameters[PARAM_ROUTER_DOMAIN]
        + parameters[PARAM_CONTEXT_PATH]
    )
