'''
Single-round transition for the seasonal inventory warehouse.

Event sequence for one round:
    0) Validate the resupply action (nothing changes if it is rejected).
    1) Sample demand for every commodity from the current round.
    2) Subtract demand from stock, floored at zero; record unmet demand
       against the stock held at the start of the round.
    3) Admit resupply in catalog order under the shared capacity bound.
    4) Assemble the next state and advance the round counter (wrapping at the
       end of the cycle).
    5) Charge order, unmet-demand and storage costs.

`step` never mutates the state it is given; callers replace their state with
`StepResult.next_state`.
'''

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Mapping

import numpy as np

from .allocation import allocate_resupply
from .catalog import CommodityCatalog
from .demand import GaussianSampler, sample_demand
from .reward import CostBreakdown, compute_costs
from .validation import is_whole_number, validate_action

logger = logging.getLogger(__name__)


@dataclass
class WarehouseState:
    round: int = 0
    quantity: Dict[str, int] = field(default_factory=dict)
    demand: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def initial(cls, catalog: CommodityCatalog, quantity: Mapping[str, int] = None) -> 'WarehouseState':
        """ Episode start: round zero, empty stock unless `quantity` is given, no demand yet. """
        quantity = quantity or {}
        unknown = set(quantity) - set(catalog.order)
        if unknown:
            raise ValueError(f"Unknown commodities in initial quantity: {sorted(unknown)}")
        for name, value in quantity.items():
            if not is_whole_number(value):
                raise ValueError(f"Initial quantity for {name!r} must be an integer, got {value!r}")
        state = cls(round=0,
                    quantity={n: int(quantity.get(n, 0)) for n in catalog.order},
                    demand={n: 0 for n in catalog.order})
        state.validate(catalog)
        return state

    def copy(self) -> 'WarehouseState':
        return WarehouseState(round=self.round, quantity=dict(self.quantity), demand=dict(self.demand))

    def total_stock(self) -> int:
        return sum(self.quantity.values())

    def as_array(self, catalog: CommodityCatalog) -> np.ndarray:
        """ [quantity..., demand..., round] in catalog order. """
        q = [self.quantity[n] for n in catalog.order]
        d = [self.demand[n] for n in catalog.order]
        return np.array(q + d + [self.round], dtype=np.float64)

    def validate(self, catalog: CommodityCatalog):
        """ Raises ValueError if the state breaks a warehouse invariant. """
        if set(self.quantity) != set(catalog.order):
            raise ValueError("State quantities must cover exactly the catalog commodities")
        if any(q < 0 for q in self.quantity.values()):
            raise ValueError(f"Negative stock in state: {self.quantity}")
        if self.total_stock() > catalog.params.max_inventory:
            raise ValueError(
                f"Total stock {self.total_stock()} exceeds capacity {catalog.params.max_inventory}")
        if not 0 <= self.round < catalog.params.rounds_per_cycle:
            raise ValueError(f"Round {self.round} outside [0, {catalog.params.rounds_per_cycle})")


@dataclass(frozen=True)
class StepResult:
    next_state: WarehouseState
    reward: float
    costs: CostBreakdown
    resupply: Dict[str, int]
    demand: Dict[str, int]
    unmet: Dict[str, int]
    granted: Dict[str, int]


def next_round(round_idx: int, rounds_per_cycle: int) -> int:
    return round_idx + 1 if round_idx < rounds_per_cycle - 1 else 0


def transition(catalog: CommodityCatalog,
               state: WarehouseState,
               resupply: Mapping[str, int],
               demand: Mapping[str, int]):
    '''
    Applies already-sampled demand and a validated action to `state`.

    Returns (next_state, unmet, granted). `state` is left untouched.
    '''
    params = catalog.params
    after_demand = {}
    unmet = {}
    for name in catalog.order:
        q, d = state.quantity[name], demand[name]
        after_demand[name] = max(0, math.ceil(q - d))
        unmet[name] = max(0, math.ceil(d - q))
    after_demand_sum = sum(after_demand.values())

    granted = allocate_resupply(catalog.order, resupply, after_demand_sum, params.max_inventory)

    next_state = WarehouseState(
        round=next_round(state.round, params.rounds_per_cycle),
        quantity={n: after_demand[n] + granted[n] for n in catalog.order},
        demand=dict(demand),
    )

    assert all(q >= 0 for q in next_state.quantity.values()), "allocator produced negative stock"
    assert next_state.total_stock() <= params.max_inventory, "allocator exceeded warehouse capacity"
    assert 0 <= next_state.round < params.rounds_per_cycle
    return next_state, unmet, granted


def step(catalog: CommodityCatalog,
         state: WarehouseState,
         action: Mapping[str, int],
         sampler: GaussianSampler) -> StepResult:
    """ Validates `action`, runs one round and prices it. Raises InvalidActionError on a bad action. """
    resupply = validate_action(catalog, action)
    demand = sample_demand(catalog, state.round, sampler)
    next_state, unmet, granted = transition(catalog, state, resupply, demand)
    costs = compute_costs(catalog, state.quantity, resupply, unmet)

    logger.debug("round %d: demand=%s granted=%s unmet=%s reward=%.3f",
                 state.round, demand, granted, unmet, costs.reward)
    return StepResult(next_state=next_state, reward=costs.reward, costs=costs, resupply=resupply,
                      demand=demand, unmet=unmet, granted=granted)
