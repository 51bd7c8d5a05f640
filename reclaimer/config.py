"""
Run settings resolved from the GitHub Actions environment and CLI flags.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace

from reclaimer.exceptions import InputError

VERBOSE_INPUT = "verbose-output"

# YAML 1.2 core schema booleans, as accepted by the Actions toolkit
TRUE_VALUES = ("true", "True", "TRUE")
FALSE_VALUES = ("false", "False", "FALSE")


def input_env_name(name: str) -> str:
    """Environment variable the runner uses for an action input."""
    return f"INPUT_{name.replace(' ', '_').upper()}"


def get_boolean_input(name: str, env: Mapping[str, str] | None = None, default: bool = False) -> bool:
    """
    Read a boolean action input.

    Raises:
        InputError: If the value is set but is not a YAML 1.2 boolean.
    """
    env = os.environ if env is None else env
    value = env.get(input_env_name(name), "").strip()
    if not value:
        return default
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise InputError(
        f"Input does not meet YAML 1.2 \"Core Schema\" specification: {name}\n"
        f"Support boolean input list: `true | True | TRUE | false | False | FALSE`"
    )


@dataclass(frozen=True)
class Settings:
    verbose: bool = False
    debug: bool = False
    dry_run: bool = False
    use_sudo: bool = True
    mount_point: str = "/"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if env is None else env
        return cls(
            verbose=get_boolean_input(VERBOSE_INPUT, env),
            debug=env.get("RUNNER_DEBUG") == "1",
            mount_point=env.get("RECLAIMER_MOUNT_POINT") or "/",
        )

    def merge(self, **overrides) -> "Settings":
        """Return a copy with every override that is not None applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
