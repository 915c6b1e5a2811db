"""
Tests for the public package surface.
"""

import importlib

import pytest

PACKAGES = [
    "ethcontract",
    "ethcontract.abi",
    "ethcontract.contract",
    "ethcontract.errors",
    "ethcontract.signing",
    "ethcontract.transport",
    "ethcontract.types",
    "ethcontract.utils",
]


class TestExports:
    """Tests for __all__ lists."""

    @pytest.mark.parametrize("name", PACKAGES)
    def test_every_export_resolves(self, name) -> None:
        module = importlib.import_module(name)
        missing = [attr for attr in module.__all__ if not hasattr(module, attr)]
        assert missing == []

    @pytest.mark.parametrize(
        "name,attr",
        [("ethcontract.types", "parse_logs"), ("ethcontract.utils", "ZERO_ADDRESS")],
    )
    def test_unused_helpers_not_exported(self, name, attr) -> None:
        module = importlib.import_module(name)
        assert attr not in module.__all__
        assert not hasattr(module, attr)
