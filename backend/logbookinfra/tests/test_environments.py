from __future__ import annotations

import aws_cdk as cdk
import pytest

from logbookinfra import environments
from logbookinfra.environments import AuroraCapacity, ConfigurationError, resolve_environment


def test_defaults_to_dev(monkeypatch):
    monkeypatch.delenv("CDK_ENV", raising=False)

    settings = resolve_environment(cdk.App())

    assert settings.name == "dev"
    assert settings.account == "111111111111"
    assert settings.region == "us-east-1"
    assert settings.aurora_capacity == AuroraCapacity(0.5, 4)


def test_context_wins_over_environment_variable(monkeypatch):
    monkeypatch.setenv("CDK_ENV", "staging")

    settings = resolve_environment(cdk.App(context={"env": "dev"}))

    assert settings.name == "dev"


def test_unknown_environment_lists_available(monkeypatch):
    monkeypatch.setenv("CDK_ENV", "staging")

    with pytest.raises(ConfigurationError) as excinfo:
        resolve_environment(cdk.App())

    assert str(excinfo.value) == 'Unknown environment "staging". Available environments: dev.'


def test_unknown_environment_with_empty_registry(monkeypatch):
    monkeypatch.setattr(environments, "ENVIRONMENTS", {})

    with pytest.raises(ConfigurationError, match="Available environments: none."):
        resolve_environment(cdk.App(context={"env": "dev"}))


def test_cdk_environment():
    env = environments.ENVIRONMENTS["dev"].to_cdk_environment()
    assert env.account == "111111111111"
    assert env.region == "us-east-1"


@pytest.mark.parametrize(
    "min_capacity,max_capacity",
    [
        (-0.5, 4),
        (0.5, 300),
        (0.75, 4),
        (4, 2),
        (0, 4),
    ],
)
def test_invalid_capacity_rejected(min_capacity, max_capacity):
    with pytest.raises(ConfigurationError):
        AuroraCapacity(min_capacity, max_capacity)


def test_smallest_capacity_allowed():
    capacity = AuroraCapacity(0.5, 0.5)
    assert capacity.min_capacity == capacity.max_capacity == 0.5
