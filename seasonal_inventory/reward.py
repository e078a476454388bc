'''
Per-round cost model.

Order and unmet-demand costs carry a fixed base charge that applies as soon as
any units are ordered (or go unmet) in the round. Storage is charged on the
stock held at the start of the round.
'''

from dataclasses import dataclass
from typing import Mapping

import numpy as np

from .catalog import CommodityCatalog


@dataclass(frozen=True)
class CostBreakdown:
    order_cost: float
    unmet_cost: float
    storage_cost: float

    @property
    def total(self) -> float:
        return self.order_cost + self.unmet_cost + self.storage_cost

    @property
    def reward(self) -> float:
        return -self.total


def compute_costs(catalog: CommodityCatalog,
                  quantity: Mapping[str, int],
                  resupply: Mapping[str, int],
                  unmet: Mapping[str, int]) -> CostBreakdown:
    """ Costs of one round from pre-transition stock, requested resupply and unmet demand. """
    order = catalog.order
    q = np.array([quantity.get(n, 0) for n in order], dtype=np.float64)
    r = np.array([resupply.get(n, 0) for n in order], dtype=np.float64)
    u = np.array([unmet.get(n, 0) for n in order], dtype=np.float64)

    unit_cost = np.array([catalog[n].unit_cost for n in order])
    unmet_unit_cost = np.array([catalog[n].unit_unmet_demand_cost for n in order])
    storage_unit_cost = np.array([catalog[n].storage_cost_per_unit for n in order])

    params = catalog.params
    order_cost = params.base_order_cost + float(r @ unit_cost) if r.sum() > 0 else 0.0
    unmet_cost = params.base_unmet_demand_cost + float(u @ unmet_unit_cost) if u.sum() > 0 else 0.0
    storage_cost = float(q @ storage_unit_cost)
    return CostBreakdown(order_cost=order_cost, unmet_cost=unmet_cost, storage_cost=storage_cost)


def compute_reward(catalog, quantity, resupply, unmet) -> float:
    return compute_costs(catalog, quantity, resupply, unmet).reward
