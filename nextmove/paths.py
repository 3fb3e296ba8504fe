from __future__ import annotations

import os
from pathlib import Path

APP_ENV_POLICY = "NEXTMOVE_POLICY_PATH"
POLICY_FILENAME = "planning_policy.yaml"


def project_root() -> Path:
    """
    Repository/project root directory.
    Contains nextmove/, api/, cli/, config/, tests/.
    """
    return Path(__file__).parent.parent.resolve()


def config_dir() -> Path:
    return project_root() / "config"


def policy_path() -> Path:
    """
    Planning policy file.

    Resolution order:
    1. NEXTMOVE_POLICY_PATH env var (explicit override)
    2. <project_root>/config/planning_policy.yaml (default)
    """
    if os.environ.get(APP_ENV_POLICY):
        return Path(os.environ[APP_ENV_POLICY]).expanduser().resolve()
    return config_dir() / POLICY_FILENAME
