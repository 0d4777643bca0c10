import os

import pytest


def pytest_configure(config):
    """Set up environment variables before any modules are imported."""
    for var in ("DEPLOYMENT_TYPE", "ALLOWED_CONTEXTS", "ALLOWED_NAMESPACES", "ALLOWED_RESOURCE_KINDS"):
        os.environ.pop(var, None)

    os.environ.setdefault("DEBUG", "false")
    os.environ.setdefault("KUBECTL_BINARY", "kubectl")


pytest_configure(None)


@pytest.fixture(autouse=True, scope="module")
def env():
    original_env = os.environ.copy()

    yield

    os.environ.clear()
    os.environ.update(original_env)


from fixtures.cluster import *  # noqa
