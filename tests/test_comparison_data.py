"""Tests for the chart-ready comparison projections."""

import pytest

from bytescope.contract.comparator import ContractComparator
from bytescope.contract.contract_model import ContractComparison
from bytescope.dashboard.comparison_data import (
    CHART_COLORS,
    ComparisonDataAggregator,
    calculate_metrics,
    process_all,
    process_complexity_distribution,
    process_contract_sizes,
    process_function_distribution,
    process_proxy_relationships,
    process_security_features,
    process_standards_compliance,
)

from conftest import (
    ADDRESS_A,
    ADDRESS_B,
    ADDRESS_C,
    ERC20_OPTIONAL,
    ERC20_REQUIRED,
    analyze,
)


@pytest.fixture
def contracts():
    return (
        analyze(ADDRESS_A, ["0x5c60da1b", "0x3659cfe6"], "Proxy"),
        analyze(ADDRESS_B, ERC20_REQUIRED + ERC20_OPTIONAL + ["0x8da5cb5b"], "Token"),
        analyze(ADDRESS_C, ["0x022c0d9f"], "Pair"),
    )


@pytest.fixture
def comparison(contracts):
    return ContractComparator().compare(contracts)


class TestEmptyInput:

    def test_zero_shape(self):
        processed = process_all(ContractComparison())

        assert processed["contract_sizes"] == []
        assert processed["function_distribution"] == []
        assert processed["similarity_matrix"] == []
        assert processed["standards_compliance"] == []
        assert processed["security_features"] == []
        assert processed["complexity_distribution"] == []
        assert processed["proxy_relationships"] == []
        assert processed["metrics"]["total_contracts"] == 0
        assert processed["metrics"]["largest_contract"] == {"name": "", "address": "", "size": 0}


class TestProjections:

    def test_contract_sizes(self, contracts):
        rows = process_contract_sizes(contracts)

        assert [r["contract_name"] for r in rows][0] == "Token"
        sizes = [r["size"] for r in rows]
        assert sizes == sorted(sizes, reverse=True)
        assert sum(r["percentage"] for r in rows) == pytest.approx(100, abs=0.05)
        # colors follow input position, not size order
        colors = {r["address"]: r["color"] for r in rows}
        assert colors[ADDRESS_A] == CHART_COLORS[0]
        assert colors[ADDRESS_C] == CHART_COLORS[2]

    def test_function_distribution(self, contracts):
        rows = process_function_distribution(contracts)
        counts = {r["category"]: r["count"] for r in rows}

        assert counts == {"ERC20": 9, "Proxy": 2, "Security": 1, "DeFi": 1}
        assert rows[0]["category"] == "ERC20"

    def test_standards_compliance(self, contracts):
        rows = process_standards_compliance(contracts)
        erc20 = next(r for r in rows if r["standard"] == "ERC20")

        assert erc20["compliant_contracts"] == 1
        assert erc20["total_contracts"] == 3
        assert erc20["percentage"] == 33.33

    def test_security_features(self, contracts):
        (row,) = process_security_features(contracts)
        assert row["feature"] == "Ownable"
        assert row["contracts_with_feature"] == ["Token"]
        assert row["count"] == 1

    def test_complexity_distribution(self, contracts):
        rows = process_complexity_distribution(contracts)

        assert sum(r["count"] for r in rows) == len(contracts)
        assert all(r["count"] > 0 for r in rows)
        names = [n for r in rows for n in r["contracts"]]
        assert sorted(names) == ["Pair", "Proxy", "Token"]

    def test_proxy_relationships_carry_sizes(self, comparison, contracts):
        rows = process_proxy_relationships(comparison.relationships, contracts)
        token_row = next(r for r in rows if r["implementation_address"] == ADDRESS_B)

        assert token_row["proxy_address"] == ADDRESS_A
        assert token_row["proxy_name"] == "Proxy (0xaaaa...aaaa)"
        assert token_row["proxy_size"] == contracts[0].size_bytes
        assert token_row["implementation_size"] == contracts[1].size_bytes

    def test_metrics(self, contracts):
        metrics = calculate_metrics(contracts)

        assert metrics["total_contracts"] == 3
        assert metrics["total_size"] == sum(c.size_bytes for c in contracts)
        assert metrics["largest_contract"]["name"] == "Token"
        assert metrics["smallest_contract"]["name"] == "Pair"
        assert metrics["standards_detected"] == ["ERC20", "ERC721"]
        assert metrics["security_features_found"] == 1
        assert metrics["proxy_contracts_found"] == 1


class TestAggregator:

    def test_processed_is_cached(self, comparison):
        aggregator = ComparisonDataAggregator(comparison)
        assert aggregator.processed is aggregator.processed

    def test_get_chart(self, comparison):
        aggregator = ComparisonDataAggregator(comparison)
        assert len(aggregator.get_chart("contract_sizes")) == 3
        assert aggregator.get_metrics()["total_contracts"] == 3
        with pytest.raises(KeyError):
            aggregator.get_chart("metrics")
        with pytest.raises(KeyError):
            aggregator.get_chart("unknown")

    def test_to_dict(self, comparison):
        data = ComparisonDataAggregator(comparison).to_dict()
        assert data["status"] == "compared"
        assert "similarity_matrix" in data
