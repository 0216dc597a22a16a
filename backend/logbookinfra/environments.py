"""
Deployment environments.

Resolution order for the environment name:
1) CDK context `env` (cdk synth -c env=dev),
2) the CDK_ENV environment variable,
3) DEFAULT_ENVIRONMENT.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict

import aws_cdk as cdk

DEFAULT_ENVIRONMENT = "dev"
ENVIRONMENT_VARIABLE = "CDK_ENV"
CONTEXT_KEY = "env"

# Aurora Serverless v2 capacity units (ACUs) move in 0.5 steps.
MIN_ACU = 0.5
MAX_ACU = 256.0


class ConfigurationError(RuntimeError):
    """Unknown environment or invalid environment settings."""


@dataclass(frozen=True)
class AuroraCapacity:
    min_capacity: float
    max_capacity: float

    def __post_init__(self) -> None:
        for label, value in (("min_capacity", self.min_capacity), ("max_capacity", self.max_capacity)):
            if not MIN_ACU <= value <= MAX_ACU:
                raise ConfigurationError(f"{label}={value} must be between {MIN_ACU} and {MAX_ACU} ACUs.")
            if (value * 2) % 1 != 0:
                raise ConfigurationError(f"{label}={value} must be a multiple of 0.5 ACUs.")
        if self.min_capacity > self.max_capacity:
            raise ConfigurationError(
                f"min_capacity={self.min_capacity} is greater than max_capacity={self.max_capacity}."
            )


@dataclass(frozen=True)
class EnvironmentSettings:
    name: str
    account: str
    region: str
    aurora_capacity: AuroraCapacity = field(default_factory=lambda: AuroraCapacity(0.5, 4))

    def to_cdk_environment(self) -> cdk.Environment:
        return cdk.Environment(account=self.account, region=self.region)


ENVIRONMENTS: Dict[str, EnvironmentSettings] = {
    "dev": EnvironmentSettings(
        name="dev",
        account="111111111111",
        region="us-east-1",
        aurora_capacity=AuroraCapacity(min_capacity=0.5, max_capacity=4),
    ),
}


def resolve_environment_name(app: cdk.App) -> str:
    name = app.node.try_get_context(CONTEXT_KEY)
    if name is None:
        name = os.environ.get(ENVIRONMENT_VARIABLE)
    return name if name is not None else DEFAULT_ENVIRONMENT


def resolve_environment(app: cdk.App) -> EnvironmentSettings:
    environment_name = resolve_environment_name(app)
    config = ENVIRONMENTS.get(environment_name)
    if config is None:
        available = ", ".join(sorted(ENVIRONMENTS)) or "none"
        raise ConfigurationError(
            f'Unknown environment "{environment_name}". Available environments: {available}.'
        )
    return config
