'''
Seasonal multi-commodity inventory environment.
Gymnasium wrapper around the single-round transition in `transition.step`.
'''

import logging
from typing import Any, Dict, Mapping, Optional, Tuple

import gymnasium as gym
import networkx as nx
import numpy as np
import pandas as pd
from gymnasium import spaces

from .catalog import CommodityCatalog, catalog_from_config, default_catalog
from .errors import InvalidActionError
from .transition import StepResult, WarehouseState, step

logger = logging.getLogger(__name__)


# Helper function to handle environment configuration (or_gym's assign_env_config)
def assign_env_config(self, config: Dict[str, Any]):
    for key, value in config.items():
        if not hasattr(self, key):
            logger.warning("Ignoring unknown env_config key %r", key)
            continue
        setattr(self, key, value)


class SeasonalInventoryEnv(gym.Env):
    '''
    Gymnasium-compatible multi-commodity inventory environment with seasonal demand.

    Each period the agent requests resupply for every commodity. Demand is drawn
    from a cyclic Normal model, stock is depleted (lost sales), and resupply is
    admitted into a single warehouse of bounded capacity in catalog order.

    Observation Space:
        Box of [stock per commodity, last demand per commodity, round index],
        commodities in catalog order.

    Action Space:
        Box of non-negative resupply requests, one per commodity. Values are
        rounded to the nearest integer; negative requests or a total above
        warehouse capacity raise InvalidActionError.

        Each dimension is bounded by capacity on its own, so `sample_action()`
        (and `action_space.sample()`) can return actions whose total exceeds
        capacity; `step` raises InvalidActionError for those. Agents that
        sample the box directly, and `gymnasium.utils.env_checker.check_env`,
        need a wrapper that rescales actions to fit.

    Reward:
        Negative cost of the period (ordering, unmet demand, storage), discounted
        by `discount ** period`.
    '''
    metadata = {"render_modes": ["human"], "render_fps": 4}

    def __init__(self,
                 catalog: Optional[CommodityCatalog] = None,
                 num_periods: int = 24,
                 discount: float = 1.0,
                 env_config: Optional[Dict] = None):
        super().__init__()

        # --- Default Parameters ---
        self.catalog = catalog if catalog is not None else default_catalog()
        self.num_periods = num_periods
        self.discount = discount

        # --- Apply custom configuration ---
        if env_config:
            assign_env_config(self, env_config)

        self._validate_inputs()
        self.commodities = list(self.catalog.order)
        self._define_spaces()

        # Internal state variables will be initialized in reset()
        self.period: int = 0
        self.state: Optional[WarehouseState] = None
        self.Q: pd.DataFrame = None # Stock at start of each period
        self.D: pd.DataFrame = None # Demand
        self.R: pd.DataFrame = None # Resupply requested
        self.G: pd.DataFrame = None # Resupply granted
        self.U: pd.DataFrame = None # Unmet demand
        self.C: pd.DataFrame = None # Costs per period

    def _validate_inputs(self):
        """ Perform input validation checks. """
        if isinstance(self.catalog, Mapping): # catalog given as a config dict
            self.catalog = catalog_from_config(self.catalog)
        assert isinstance(self.catalog, CommodityCatalog), "catalog must be a CommodityCatalog"
        assert int(self.num_periods) == self.num_periods and self.num_periods > 0, "num_periods must be a positive integer"
        assert 0 < self.discount <= 1, "discount must be in (0, 1]"
        self.num_periods = int(self.num_periods)

    def _define_spaces(self):
        """ Defines the action and observation spaces. """
        n = len(self.commodities)
        cap = self.catalog.params.max_inventory
        self.action_space = spaces.Box(
            low=np.zeros(n, dtype=np.float32),
            high=np.full(n, cap, dtype=np.float32),
            shape=(n,),
            dtype=np.float32)

        obs_low = np.zeros(2 * n + 1, dtype=np.float32)
        obs_high = np.concatenate([
            np.full(n, cap, dtype=np.float32),     # stock
            np.full(n, np.inf, dtype=np.float32),  # demand is unbounded
            [self.catalog.params.rounds_per_cycle - 1],
        ]).astype(np.float32)
        self.observation_space = spaces.Box(low=obs_low, high=obs_high, shape=(2 * n + 1,), dtype=np.float32)

    def reset(self, *, seed: Optional[int] = None, options: Optional[Dict] = None) -> Tuple[np.ndarray, Dict[str, Any]]:
        '''
        Resets the environment to its initial state.

        `options["initial_quantity"]` may give starting stock per commodity;
        it must respect warehouse capacity.
        '''
        super().reset(seed=seed) # Important: seeds self.np_random

        initial_quantity = (options or {}).get("initial_quantity")
        self.state = WarehouseState.initial(self.catalog, initial_quantity)
        self.period = 0

        T = self.num_periods
        cols = self.commodities
        self.Q = pd.DataFrame(data=np.zeros([T + 1, len(cols)], dtype=np.int64), columns=cols)
        self.D = pd.DataFrame(data=np.zeros([T, len(cols)], dtype=np.int64), columns=cols)
        self.R = pd.DataFrame(data=np.zeros([T, len(cols)], dtype=np.int64), columns=cols)
        self.G = pd.DataFrame(data=np.zeros([T, len(cols)], dtype=np.int64), columns=cols)
        self.U = pd.DataFrame(data=np.zeros([T, len(cols)], dtype=np.int64), columns=cols)
        self.C = pd.DataFrame(data=np.zeros([T, 5]),
                              columns=['round', 'order_cost', 'unmet_cost', 'storage_cost', 'reward'],
                              dtype=np.float64)
        self.Q.loc[0] = [self.state.quantity[c] for c in cols]

        logger.debug("Reset: seed=%s initial stock=%s", seed, self.state.quantity)
        return self._get_obs(), self._get_info()

    def _get_obs(self) -> np.ndarray:
        return self.state.as_array(self.catalog).astype(self.observation_space.dtype)

    def _get_info(self) -> Dict[str, Any]:
        """ Returns auxiliary information about the current state. """
        info = {
            "period": self.period,
            "round": self.state.round,
            "inventory": dict(self.state.quantity),
            "total_inventory": self.state.total_stock(),
        }
        return info

    def _action_to_dict(self, action) -> Dict[str, int]:
        """ Rounds an array action (catalog order) to integers; mappings pass through. """
        if isinstance(action, Mapping):
            return dict(action)
        arr = np.asarray(action, dtype=np.float64).reshape(-1)
        if arr.shape[0] != len(self.commodities):
            raise InvalidActionError(f"Expected {len(self.commodities)} resupply values, got {arr.shape[0]}")
        if not np.all(np.isfinite(arr)):
            raise InvalidActionError(f"Resupply values must be finite, got {arr}")
        return {c: int(v) for c, v in zip(self.commodities, np.rint(arr))}

    def step(self, action) -> Tuple[np.ndarray, float, bool, bool, Dict[str, Any]]:
        """ Advances the environment by one period. Raises InvalidActionError without changing state. """
        if self.state is None:
            raise RuntimeError("Call reset() before step()")
        if self.period >= self.num_periods:
            raise RuntimeError("Episode is over; call reset()")
        t = self.period

        resupply = self._action_to_dict(action)
        result: StepResult = step(self.catalog, self.state, resupply, self.np_random)

        # --- Record history ---
        cols = self.commodities
        self.R.loc[t] = [result.resupply[c] for c in cols]
        self.D.loc[t] = [result.demand[c] for c in cols]
        self.G.loc[t] = [result.granted[c] for c in cols]
        self.U.loc[t] = [result.unmet[c] for c in cols]
        self.Q.loc[t + 1] = [result.next_state.quantity[c] for c in cols]
        self.C.loc[t] = [self.state.round, result.costs.order_cost, result.costs.unmet_cost,
                         result.costs.storage_cost, result.reward]

        # Apply discount factor
        discounted_reward = (self.discount ** t) * result.reward

        # --- Prepare return values ---
        self.state = result.next_state
        self.period += 1
        terminated = False # No natural end state
        truncated = self.period >= self.num_periods

        observation = self._get_obs()
        info = self._get_info()
        info.update({
            "demand": result.demand,
            "unmet": result.unmet,
            "granted": result.granted,
            "costs": result.costs,
            "reward_undiscounted": result.reward,
            "reward_discounted": discounted_reward,
        })
        return observation, float(discounted_reward), terminated, truncated, info

    def history(self) -> pd.DataFrame:
        '''
        Trajectory so far, one row per completed period.

        Columns: period, round, costs and reward, then per-commodity
        `stock_start_<c>`, `demand_<c>`, `resupply_<c>`, `granted_<c>`,
        `unmet_<c>`, `stock_end_<c>`.
        '''
        n = self.period
        parts = [
            self.C.iloc[:n].reset_index(drop=True),
            self.Q.iloc[:n].add_prefix('stock_start_').reset_index(drop=True),
            self.D.iloc[:n].add_prefix('demand_').reset_index(drop=True),
            self.R.iloc[:n].add_prefix('resupply_').reset_index(drop=True),
            self.G.iloc[:n].add_prefix('granted_').reset_index(drop=True),
            self.U.iloc[:n].add_prefix('unmet_').reset_index(drop=True),
            self.Q.iloc[1:n + 1].add_prefix('stock_end_').reset_index(drop=True),
        ]
        df = pd.concat(parts, axis=1)
        df.insert(0, 'period', np.arange(n))
        df['round'] = df['round'].astype(np.int64)
        return df

    def sample_action(self) -> np.ndarray:
        """ Samples a random action from the action space (may exceed capacity in total). """
        return self.action_space.sample()

    def render(self, mode="human"):
        if mode == "human":
            print(f"--- Period: {self.period} (round {self.state.round}) ---")
            print("Stock:")
            print(pd.Series(self.state.quantity))
            print(f"Total: {self.state.total_stock()} / {self.catalog.params.max_inventory}")
            if self.period > 0:
                print(f"\nReward (Previous Period): {self.C.loc[self.period - 1, 'reward']:.2f}")
        else:
            return super().render()

    def plot_catalog(self):
        """ Plots the allocator order (predecessor chain) using matplotlib. """
        import matplotlib.pyplot as plt

        graph = self.catalog.chain_graph()
        pos = {name: (i, 0) for i, name in enumerate(self.commodities)}
        plt.figure(figsize=(2 + 2 * len(self.commodities), 3))
        nx.draw_networkx_nodes(graph, pos, node_color='skyblue', node_size=1500)
        nx.draw_networkx_edges(graph, pos, arrowstyle='->', arrowsize=15, edge_color='gray')
        nx.draw_networkx_labels(graph, pos, font_size=10)
        plt.title("Capacity Allocation Order")
        plt.xticks([])
        plt.yticks([])
        plt.box(False)
        plt.show()

    def close(self):
        pass


# --- Example Usage ---
if __name__ == '__main__':
    print("Testing SeasonalInventoryEnv...")

    env = SeasonalInventoryEnv(num_periods=12)
    obs, info = env.reset(seed=42)
    print(f"Observation Space: {env.observation_space}")
    print(f"Action Space: {env.action_space}")
    print(f"Allocation order: {env.commodities}")

    total_reward = 0.0
    rng = np.random.default_rng(42)
    cap = env.catalog.params.max_inventory
    for i in range(env.num_periods):
        # Random split of at most a quarter of capacity, so the action always validates
        action = rng.dirichlet(np.ones(len(env.commodities))) * rng.uniform(0, cap / 4)
        obs, reward, terminated, truncated, info = env.step(np.floor(action))
        total_reward += reward
        if (i + 1) % 4 == 0:
            print(f"  Step {i+1}, Reward: {reward:.2f}, Total Reward: {total_reward:.2f}")
        if terminated or truncated:
            break

    print(f"\nEpisode Finished. Total Reward: {total_reward:.2f}")
    print(env.history()[['period', 'round', 'order_cost', 'unmet_cost', 'storage_cost', 'reward']])
    env.close()
