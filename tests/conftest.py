"""Pytest configuration and shared fixtures for EnvConf tests."""

import os
from typing import Callable, Iterator

import pytest

from envconf import Registry


@pytest.fixture
def registry() -> Registry:
    """Create an empty Registry instance."""
    return Registry()


@pytest.fixture
def env() -> Iterator[Callable[..., None]]:
    """Set environment variables for one test and remove them afterwards."""
    names = []

    def _set(**env_vars: str) -> None:
        names.extend(env_vars)
        set_env_vars(**env_vars)

    yield _set
    cleanup_env_vars(*names)


@pytest.fixture(autouse=True)
def _clean_test_variables() -> Iterator[None]:
    """Make sure variables used across tests start out unset."""
    cleanup_env_vars("nic")
    yield


def set_env_vars(**env_vars: str) -> None:
    """Set environment variables.

    Args:
        **env_vars: Environment variables to set
    """
    for key, value in env_vars.items():
        os.environ[key] = value


def cleanup_env_vars(*var_names: str) -> None:
    """Clean up environment variables.

    Args:
        *var_names: Variable names to remove
    """
    for var_name in var_names:
        os.environ.pop(var_name, None)
