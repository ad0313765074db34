"""Tests for ABI signature computation."""

from __future__ import annotations

import pytest

from pipe_registry.core.signature import build_signature
from pipe_registry.models import AbiFunction


@pytest.mark.parametrize(
    ("entry", "expected"),
    [
        ({"name": "transfer", "inputs": [{"type": "address"}, {"type": "uint256"}]}, "transfer(address,uint256)"),
        ({"name": "totalSupply", "inputs": []}, "totalSupply()"),
        ({"name": "owner"}, "owner()"),
        ({"name": "batch", "inputs": [{"type": "address[]"}, {"type": "uint256[2]"}]}, "batch(address[],uint256[2])"),
        ({"name": "swap", "inputs": [{"type": "tuple", "components": []}]}, "swap(tuple)"),
    ],
    ids=["two-args", "no-args", "inputs-missing", "arrays", "tuple"],
)
def test_named_entries(entry: dict[str, object], expected: str) -> None:
    assert build_signature(AbiFunction.model_validate(entry)) == expected


@pytest.mark.parametrize(
    "entry",
    [
        {"type": "constructor", "inputs": [{"type": "uint256"}]},
        {"type": "fallback"},
        {"name": "", "inputs": [{"type": "bytes"}]},
    ],
    ids=["constructor", "fallback", "empty-name"],
)
def test_unnamed_entries_have_no_signature(entry: dict[str, object]) -> None:
    assert build_signature(AbiFunction.model_validate(entry)) is None


def test_signature_ignores_input_names() -> None:
    entry = AbiFunction.model_validate(
        {"name": "approve", "inputs": [{"name": "spender", "type": "address"}, {"name": "amount", "type": "uint256"}]}
    )
    assert build_signature(entry) == "approve(address,uint256)"
