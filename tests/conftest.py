"""Shared fixtures and helpers for tests."""

from pathlib import Path
from typing import Any

import pytest

from pipe_registry.db import InMemoryRegistryDatabase

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Sample documents
# ---------------------------------------------------------------------------


def token_container() -> dict[str, Any]:
    """The ERC20-style container used across the tests."""
    return {
        "name": "Token",
        "tags": ["erc20"],
        "uri": "ipfs://token",
        "container": {
            "abi": [
                {
                    "name": "transfer",
                    "type": "function",
                    "inputs": [{"name": "to", "type": "address"}, {"name": "value", "type": "uint256"}],
                    "outputs": [{"name": "", "type": "bool"}],
                },
                {"name": "totalSupply", "type": "function", "inputs": []},
                {"type": "constructor", "inputs": [{"name": "supply", "type": "uint256"}]},
            ],
            "devdoc": {
                "methods": {
                    "transfer(address,uint256)": {"details": "Transfers tokens"},
                    "totalSupply()": {"details": "Total amount of tokens"},
                }
            },
            "userdoc": {"methods": {"totalSupply()": {"notice": "Supply"}}},
            "chainid": "3",
        },
    }


@pytest.fixture
def in_memory_db() -> InMemoryRegistryDatabase:
    return InMemoryRegistryDatabase()


@pytest.fixture
def token_document() -> dict[str, Any]:
    return token_container()
