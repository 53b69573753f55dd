import pytest
from typer.testing import CliRunner

from ssr_operator.executors import SynchronousExecutor
from ssr_operator.models import EnvironmentDescriptor
from ssr_operator.services.processor import SsrRequestProcessor
from tests.provisioner_utils import FakeProvisioner

ROUTER_DOMAIN = "example.com"


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    # Keep a developer's .env and shell settings out of the tests
    monkeypatch.chdir(tmp_path)
    for name in ("OPERATOR_DOMAIN_NAME", "OPERATOR_WORKER_POOL_SIZE", "OPERATOR_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def router_domain(monkeypatch):
    monkeypatch.setenv("OPERATOR_DOMAIN_NAME", ROUTER_DOMAIN)
    return ROUTER_DOMAIN


@pytest.fixture
def descriptor():
    return EnvironmentDescriptor(
        website="acme",
        app="store",
        environment="prod",
        context_path="/app",
        health_check_path="/health",
        image_url="img:1",
        namespace="ns1",
        config_map={},
    )


@pytest.fixture
def fake_provisioner():
    return FakeProvisioner()


@pytest.fixture
def processor(fake_provisioner):
    return SsrRequestProcessor(provisioner=fake_provisioner, executor=SynchronousExecutor())


@pytest.fixture
def cli_runner():
    import ssr_operator.cli as cli

    return CliRunner(), cli.app
