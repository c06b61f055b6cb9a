"""Enforcement policy loading."""

from pathlib import Path
from typing import Optional, Union

import yaml

from streamwarden.governance.schemas import EnforcementPolicy


DEFAULT_POLICY_FILE = Path(__file__).parent.parent.parent.parent / "config" / "enforcement_policy.yaml"


def load_enforcement_policy(policy_file: Optional[Union[str, Path]] = None) -> EnforcementPolicy:
    """Load and validate the enforcement policy from YAML.

    Args:
        policy_file: Path to enforcement_policy.yaml. Uses default if not provided.

    Raises:
        FileNotFoundError: If the policy file does not exist
        pydantic.ValidationError: If the policy does not match the schema
    """
    path = Path(policy_file) if policy_file else DEFAULT_POLICY_FILE
    if not path.exists():
        raise FileNotFoundError(f"Policy file not found: {path}")

    with open(path, "r") as f:
        raw_config = yaml.safe_load(f)

    return EnforcementPolicy.model_validate(raw_config)
