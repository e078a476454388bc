'''
Seasonal demand generator.

Expected demand for each commodity follows a cosine envelope over the cycle,
peaking at the commodity's phase offset. Realized demand is a Normal sample
around that mean, rounded to an integer and floored at zero.
'''

from typing import Dict, Protocol

import numpy as np

from .catalog import Commodity, CommodityCatalog


class GaussianSampler(Protocol):
    """ Anything with a numpy-style `normal(loc, scale)`; `np.random.Generator` qualifies. """

    def normal(self, loc: float, scale: float) -> float:
        ...


def cyclic_mean(commodity: Commodity, round_idx: int, rounds_per_cycle: int) -> float:
    phase = np.cos(2 * np.pi * (round_idx + commodity.peak_demand_round) / rounds_per_cycle)
    spread = commodity.max_expected_demand - commodity.min_expected_demand
    return float(spread * ((phase + 1) / 2) + commodity.min_expected_demand)


def expected_demand_curve(catalog: CommodityCatalog, name: str) -> np.ndarray:
    """ Mean demand of one commodity for every round of the cycle. """
    n = catalog.params.rounds_per_cycle
    commodity = catalog[name]
    return np.array([cyclic_mean(commodity, r, n) for r in range(n)])


def sample_demand(catalog: CommodityCatalog, round_idx: int, sampler: GaussianSampler) -> Dict[str, int]:
    '''
    Draws one demand value per commodity for the given round.

    Draws happen in catalog order, one per commodity, so a seeded sampler
    reproduces the same trajectory.
    '''
    n = catalog.params.rounds_per_cycle
    demand = {}
    for c in catalog:
        mean = cyclic_mean(c, round_idx, n)
        draw = sampler.normal(mean, c.demand_std)
        demand[c.name] = max(0, int(round(float(draw))))
    return demand
