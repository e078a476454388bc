'''
Baseline resupply agents for the seasonal inventory environment.

Agents follow the benchmark interface `get_action(observation, env)` and
return an array of resupply requests in catalog order. All of them keep the
total request within warehouse capacity, so their actions always validate.
'''

import numpy as np
from scipy.stats import norm

from .demand import cyclic_mean
from .transition import next_round


class BaseAgent:
    def __init__(self, name="BaseAgent"):
        self.name = name

    def get_action(self, observation: np.ndarray, env) -> np.ndarray:
        raise NotImplementedError

    def reset(self, seed=None):
        """ Called by the benchmark at the start of each episode. """


class ZeroAgent(BaseAgent):
    def __init__(self):
        super().__init__(name="Zero")

    def get_action(self, observation, env):
        return np.zeros(env.action_space.shape, dtype=env.action_space.dtype)


class RandomAgent(BaseAgent):
    '''
    Orders a random fraction of capacity, split across commodities at random.

    `max_fraction` caps the total as a share of `max_inventory`.
    '''
    def __init__(self, max_fraction: float = 0.5, seed=None):
        super().__init__(name=f"Random_{max_fraction:.2f}")
        self.max_fraction = max_fraction
        self.rng = np.random.default_rng(seed)

    def reset(self, seed=None):
        if seed is not None:
            self.rng = np.random.default_rng(seed)

    def get_action(self, observation, env):
        env_core = env.unwrapped
        n = len(env_core.commodities)
        budget = self.rng.uniform(0, self.max_fraction * env_core.catalog.params.max_inventory)
        split = self.rng.dirichlet(np.ones(n))
        return np.floor(split * budget).astype(env.action_space.dtype)


class OrderUpToAgent(BaseAgent):
    '''
    Raises each commodity to a Normal quantile of next round's expected demand.

    Resupply is admitted after this round's demand, so the target covers the
    demand of the following round: `norm.ppf(service_level, mean, std)`. When
    the combined order exceeds capacity it is scaled down proportionally.
    '''
    def __init__(self, service_level: float = 0.9):
        super().__init__(name=f"OrderUpTo_SL={service_level:.2f}")
        assert 0 < service_level < 1, "service_level must be in (0, 1)"
        self.service_level = service_level

    def target_levels(self, env, round_idx: int) -> np.ndarray:
        catalog = env.catalog
        upcoming = next_round(round_idx, catalog.params.rounds_per_cycle)
        targets = []
        for c in catalog:
            mean = cyclic_mean(c, upcoming, catalog.params.rounds_per_cycle)
            if c.demand_std > 0:
                targets.append(norm.ppf(self.service_level, loc=mean, scale=c.demand_std))
            else:
                targets.append(mean)
        return np.maximum(0, np.ceil(targets))

    def get_action(self, observation, env):
        env_core = env.unwrapped
        n = len(env_core.commodities)
        stock = np.asarray(observation[:n], dtype=np.float64)
        round_idx = int(observation[-1])

        orders = np.maximum(0, self.target_levels(env_core, round_idx) - stock)
        cap = env_core.catalog.params.max_inventory
        if orders.sum() > cap:
            orders = np.floor(orders * cap / orders.sum())
        return orders.astype(env.action_space.dtype)
