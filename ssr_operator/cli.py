from __future__ import annotations

from concurrent.futures import Future
import importlib
import logging
from pathlib import Path
from typing import Any, Optional

import typer
import yaml
from pydantic import ValidationError

from ssr_operator.executors import SynchronousExecutor
from ssr_operator.logging_config import configure_logging
from ssr_operator.models import EnvironmentDescriptor
from ssr_operator.provisioner import ResourceProvisioner
from ssr_operator.services.errors import SsrException
from ssr_operator.services.processor import SsrRequestProcessor

configure_logging()
logger = logging.getLogger(__name__)
app = typer.Typer(help="SSR environment operator CLI", pretty_exceptions_show_locals=False)

RequestJsonOption = typer.Option(None, "--request-json", help="Environment request as an inline JSON object")
RequestFileOption = typer.Option(None, "--request-file", help="Path to a JSON or YAML environment request")
ProvisionerOption = typer.Option(
    ..., "--provisioner", help="Import string module:attribute of a provisioner or provisioner factory"
)
ValidateFirstOption = typer.Option(
    False, "--validate-url-parameters", help="Check access URL parameters before creating anything"
)


def _parse_request_input(*, request_json: str | None, request_file: Path | None) -> dict:
    if request_json is not None and request_file is not None:
        raise ValueError("Provide only one of --request-json or --request-file")
    if request_json is None and request_file is None:
        raise ValueError("One of --request-json or --request-file is required")

    if request_json is not None:
        source, content = "--request-json", request_json
    else:
        source = "--request-file"
        try:
            content = request_file.read_text()
        except OSError as exc:
            raise ValueError(f"Unable to read {source}: {exc}") from exc

    # JSON is a subset of YAML, one parser covers both request formats
    try:
        parsed = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid request in {source}: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ValueError(f"{source} must contain an object")
    return parsed


def _load_descriptor(request_json: str | None, request_file: Path | None) -> EnvironmentDescriptor:
    try:
        payload = _parse_request_input(request_json=request_json, request_file=request_file)
        return EnvironmentDescriptor.model_validate(payload)
    except (ValueError, ValidationError) as exc:
        logger.warning("Rejected environment request: %s", exc)
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=2)


def load_provisioner(import_string: str) -> ResourceProvisioner:
    """Resolve ``module:attribute`` to a provisioner, calling it when it is a factory."""
    module_name, _, attribute = import_string.partition(":")
    if not module_name or not attribute:
        raise ValueError(f"Provisioner must be given as module:attribute, got {import_string!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ValueError(f"Could not import provisioner module {module_name!r}: {exc}") from exc

    target: Any = module
    for part in attribute.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise ValueError(f"Attribute {attribute!r} not found in module {module_name!r}") from exc

    if isinstance(target, type) or (not isinstance(target, ResourceProvisioner) and callable(target)):
        target = target()
    if not isinstance(target, ResourceProvisioner):
        raise ValueError(f"{import_string!r} does not provide a resource provisioner")
    return target


def _build_processor(provisioner: str, validate_url_parameters: bool) -> SsrRequestProcessor:
    try:
        resolved = load_provisioner(provisioner)
    except ValueError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=2)
    # One request per invocation, no need for the shared worker pool
    return SsrRequestProcessor(
        provisioner=resolved,
        executor=SynchronousExecutor(),
        validate_url_parameters=validate_url_parameters,
    )


def _exit_for_domain_error(exc: SsrException) -> None:
    logger.warning("CLI command failed with domain error: %s", exc)
    typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(code=1)


def _echo_yaml(entity: Any) -> None:
    typer.echo(yaml.safe_dump(entity, sort_keys=False), nl=False)


def _await_outcome(future: Future) -> None:
    try:
        outcome = future.result()
    except SsrException as e:
        _exit_for_domain_error(e)
    _echo_yaml(outcome)


@app.command("provision")
def provision(
    request_json: Optional[str] = RequestJsonOption,
    request_file: Optional[Path] = RequestFileOption,
    provisioner: str = ProvisionerOption,
    validate_url_parameters: bool = ValidateFirstOption,
) -> None:
    descriptor = _load_descriptor(request_json, request_file)
    processor = _build_processor(provisioner, validate_url_parameters)
    _await_outcome(processor.process_provision_request(descriptor))


@app.command("update")
def update(
    request_json: Optional[str] = RequestJsonOption,
    request_file: Optional[Path] = RequestFileOption,
    provisioner: str = ProvisionerOption,
) -> None:
    descriptor = _load_descriptor(request_json, request_file)
    processor = _build_processor(provisioner, False)
    _await_outcome(processor.process_update_request(descriptor))


@app.command("delete")
def delete(
    request_json: Optional[str] = RequestJsonOption,
    request_file: Optional[Path] = RequestFileOption,
    provisioner: str = ProvisionerOption,
) -> None:
    descriptor = _load_descriptor(request_json, request_file)
    processor = _build_processor(provisioner, False)
    _await_outcome(processor.process_delete_request(descriptor))


@app.command("update-config-map")
def update_config_map(
    request_json: Optional[str] = RequestJsonOption,
    request_file: Optional[Path] = RequestFileOption,
    provisioner: str = ProvisionerOption,
) -> None:
    descriptor = _load_descriptor(request_json, request_file)
    processor = _build_processor(provisioner, False)
    _await_outcome(processor.process_config_update_request(descriptor))


@app.command("parameters")
def parameters(
    request_json: Optional[str] = RequestJsonOption,
    request_file: Optional[Path] = RequestFileOption,
) -> None:
    """Print the template parameters derived from a request."""
    descriptor = _load_descriptor(request_json, request_file)
    _echo_yaml(dict(descriptor.to_template_parameters()))


if __name__ == "__main__":
    app()
