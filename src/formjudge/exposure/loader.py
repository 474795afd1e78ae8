"""Load an exposure policy from YAML."""

import logging
from pathlib import Path

import yaml

from formjudge.errors import ConfigurationError
from formjudge.exposure.policy import ExposurePolicy

logger = logging.getLogger(__name__)


def load_exposure_file(path: Path) -> ExposurePolicy:
    """Load an exposure policy from a YAML file.

    The file looks like:

        expose:
          Post: [title, slug]
          Email: [address]
        aliases:
          EmailAttributes: Email

    Raises:
        ConfigurationError: If the file is missing, not YAML, or misshapen
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Exposure file not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Exposure file {path} is not valid YAML: {e}") from e

    try:
        policy = ExposurePolicy.from_dict(data)
    except ValueError as e:
        raise ConfigurationError(f"Exposure file {path}: {e}") from e

    logger.info(
        "Loaded exposure policy from %s: %d type(s), %d alias(es)",
        path,
        len(policy.exposed),
        len(policy.exposed_as),
    )
    return policy
