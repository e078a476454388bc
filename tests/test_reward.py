import pytest

from seasonal_inventory.reward import compute_costs, compute_reward

from .helpers import make_catalog


@pytest.fixture
def priced_catalog():
    return make_catalog(c2={'unit_cost': 3.0, 'unit_unmet_demand_cost': 4.0, 'storage_cost_per_unit': 1.0})


def test_single_unit_order_pays_base_cost(priced_catalog):
    costs = compute_costs(priced_catalog, {"c1": 0, "c2": 0}, {"c1": 1, "c2": 0}, {"c1": 0, "c2": 0})
    assert costs.order_cost == pytest.approx(10.0 + 2.0)
    assert costs.unmet_cost == 0.0
    assert costs.storage_cost == 0.0
    assert costs.reward == pytest.approx(-12.0)


def test_no_order_means_no_order_cost_even_with_unmet_demand(priced_catalog):
    costs = compute_costs(priced_catalog, {"c1": 0, "c2": 0}, {"c1": 0, "c2": 0}, {"c1": 2, "c2": 1})
    assert costs.order_cost == 0.0
    assert costs.unmet_cost == pytest.approx(5.0 + 2 * 3.0 + 1 * 4.0)


def test_storage_charged_on_stock(priced_catalog):
    costs = compute_costs(priced_catalog, {"c1": 10, "c2": 4}, {}, {})
    assert costs.storage_cost == pytest.approx(10 * 0.5 + 4 * 1.0)
    assert costs.total == pytest.approx(9.0)


def test_reward_is_negative_total(priced_catalog):
    quantity, resupply, unmet = {"c1": 10, "c2": 4}, {"c1": 3, "c2": 2}, {"c1": 1, "c2": 0}
    expected = -((10 + 3 * 2.0 + 2 * 3.0) + (5 + 1 * 3.0) + (10 * 0.5 + 4 * 1.0))
    assert compute_reward(priced_catalog, quantity, resupply, unmet) == pytest.approx(expected)
