from seasonal_inventory.catalog import CommodityCatalog, Commodity, GlobalParameters


def make_catalog(n_items=2, max_inventory=500, rounds_per_cycle=4,
                 base_order_cost=10.0, base_unmet_demand_cost=5.0, **commodity_overrides):
    """ Chain c1 -> c2 -> ... with zero demand unless overridden. """
    params = GlobalParameters(rounds_per_cycle=rounds_per_cycle, max_inventory=max_inventory,
                              base_order_cost=base_order_cost,
                              base_unmet_demand_cost=base_unmet_demand_cost)
    commodities = []
    for i in range(1, n_items + 1):
        name = f"c{i}"
        kwargs = dict(unit_cost=2.0, peak_demand_round=0, min_expected_demand=0,
                      max_expected_demand=0, demand_std=0.0, storage_cost_per_unit=0.5,
                      unit_unmet_demand_cost=3.0, predecessor=f"c{i - 1}" if i > 1 else None)
        kwargs.update(commodity_overrides.get(name, {}))
        commodities.append(Commodity(name=name, **kwargs))
    return CommodityCatalog.build(params, commodities)


class FixedSampler:
    """ Returns preset draws in order and records what was asked for. """
    def __init__(self, values):
        self.values = list(values)
        self.calls = []

    def normal(self, loc, scale):
        self.calls.append((loc, scale))
        return self.values[len(self.calls) - 1]


class MeanSampler:
    def normal(self, loc, scale):
        return loc
