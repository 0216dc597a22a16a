"""
CDK entry point.

    CDK_ENV=dev cdk synth        (or: cdk synth -c env=dev)

The environment name picks account, region and Aurora capacity from
logbookinfra.environments.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

import aws_cdk as cdk

from .core_stack import CoreInfrastructureStack
from .environments import ConfigurationError, resolve_environment

logger = logging.getLogger(__name__)

STACK_PREFIX = "LogbookLM"


def build_app(app: Optional[cdk.App] = None) -> tuple[cdk.App, CoreInfrastructureStack]:
    app = app or cdk.App()
    settings = resolve_environment(app)
    stack = CoreInfrastructureStack(
        app,
        f"{STACK_PREFIX}-{settings.name}",
        env_config=settings,
        env=settings.to_cdk_environment(),
    )
    return app, stack


def main() -> int:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        app, stack = build_app()
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return 1

    assembly = app.synth()
    logger.info("Synthesized %s to %s", stack.stack_name, assembly.directory)
    return 0


if __name__ == "__main__":
    sys.exit(main())
