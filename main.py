#!/usr/bin/env python3
"""Main entry point for StreamWarden."""

from streamwarden.common.logging import get_logger
from streamwarden.common.config import Config
from streamwarden.governance import load_enforcement_policy
from streamwarden.rules.integration import create_action_orchestrator

logger = get_logger(__name__)


def main():
    """Main entry point."""
    config = Config()
    policy = load_enforcement_policy(config.policy_file)
    orchestrator = create_action_orchestrator(config, policy)

    audit_logger = orchestrator.deps.audit_logger
    if audit_logger is not None:
        audit_logger.log_system_event(
            "startup", metadata={"environment": config.environment.value}
        )

    logger.info(f"StreamWarden initialized in {config.environment} mode")
    logger.info(
        f"Enforcement policy {policy.version}, "
        f"metrics namespace {orchestrator.metrics.namespace}"
    )

    orchestrator.metrics.shutdown()


if __name__ == "__main__":
    main()
