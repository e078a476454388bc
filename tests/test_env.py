import numpy as np
import pytest

from seasonal_inventory.catalog import DEFAULT_CATALOG_CONFIG
from seasonal_inventory.env import SeasonalInventoryEnv
from seasonal_inventory.errors import InvalidActionError

from .helpers import make_catalog


@pytest.fixture
def env(catalog):
    env = SeasonalInventoryEnv(catalog=catalog, num_periods=6, discount=0.5)
    env.reset(seed=0)
    return env


def test_spaces_match_catalog(env):
    assert env.action_space.shape == (2,)
    assert env.observation_space.shape == (5,)
    assert env.action_space.high[0] == 500


def test_reset_observation(catalog):
    env = SeasonalInventoryEnv(catalog=catalog)
    obs, info = env.reset(seed=1, options={"initial_quantity": {"c1": 7}})
    np.testing.assert_array_equal(obs, [7, 0, 0, 0, 0])
    assert obs.dtype == np.float32
    assert info["total_inventory"] == 7
    assert env.observation_space.contains(obs)


def test_step_rewards_and_discount(env):
    obs, reward, terminated, truncated, info = env.step(np.array([100, 100], dtype=np.float32))
    assert reward == pytest.approx(-(10.0 + 200 * 2.0))
    np.testing.assert_array_equal(obs, [100, 100, 0, 0, 1])
    assert not terminated and not truncated

    obs, reward, _, _, info = env.step(np.zeros(2))
    assert info["reward_undiscounted"] == pytest.approx(-100.0)
    assert reward == pytest.approx(-50.0)


def test_array_actions_are_rounded(env):
    _, _, _, _, info = env.step(np.array([2.6, 0.4]))
    assert info["granted"] == {"c1": 3, "c2": 0}


def test_negative_action_rejected_without_advancing(env):
    with pytest.raises(InvalidActionError):
        env.step(np.array([-1.0, 0.0]))
    assert env.period == 0
    assert env.state.quantity == {"c1": 0, "c2": 0}


def test_over_capacity_action_rejected(env):
    with pytest.raises(InvalidActionError):
        env.step({"c1": 300, "c2": 201})


def test_truncates_after_num_periods(env):
    truncated = False
    steps = 0
    while not truncated:
        _, _, _, truncated, _ = env.step(np.zeros(2))
        steps += 1
    assert steps == 6
    with pytest.raises(RuntimeError):
        env.step(np.zeros(2))


def test_same_seed_same_trajectory():
    def run(seed):
        env = SeasonalInventoryEnv(num_periods=12)
        env.reset(seed=seed)
        for _ in range(12):
            env.step(np.array([20, 10, 5]))
        return env.history()

    first, second = run(3), run(3)
    assert first.equals(second)
    assert not first.equals(run(4))


def test_history_columns(env):
    env.step(np.array([5, 5]))
    env.step(np.array([0, 3]))
    hist = env.history()
    assert len(hist) == 2
    assert list(hist['period']) == [0, 1]
    assert list(hist['round']) == [0, 1]
    assert list(hist['stock_end_c2']) == [5, 8]
    assert list(hist['stock_start_c2']) == [0, 5]
    assert list(hist['resupply_c2']) == [5, 3]


def test_env_config_overrides():
    env = SeasonalInventoryEnv(env_config={"num_periods": 3, "catalog": DEFAULT_CATALOG_CONFIG})
    assert env.num_periods == 3
    assert env.commodities == ["flour", "sugar", "coffee"]


def test_capacity_respected_with_random_actions():
    catalog = make_catalog(n_items=3, max_inventory=60,
                           c1={'min_expected_demand': 0, 'max_expected_demand': 10, 'demand_std': 3.0})
    env = SeasonalInventoryEnv(catalog=catalog, num_periods=50)
    env.reset(seed=9)
    rng = np.random.default_rng(9)
    for _ in range(50):
        action = np.floor(rng.dirichlet(np.ones(3)) * 60)
        obs, *_ = env.step(action)
        assert obs[:3].sum() <= 60
        assert (obs >= 0).all()


def test_sampled_action_at_space_bounds_is_rejected(env):
    # action_space.high is capacity per commodity; together they exceed it
    action = env.action_space.high.copy()
    assert env.action_space.contains(action)
    with pytest.raises(InvalidActionError):
        env.step(action)
    assert env.period == 0
