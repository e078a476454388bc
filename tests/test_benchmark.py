import os

import numpy as np
import pandas as pd
import pytest

from seasonal_inventory.agents import OrderUpToAgent, RandomAgent, ZeroAgent
from seasonal_inventory.benchmark import (episode_seeds, evaluate_agent, plot_benchmark_results,
                                          run_benchmark, summarize_results)
from seasonal_inventory.env import SeasonalInventoryEnv

ENV_CONFIG = {'num_periods': 6}


def test_episode_seeds_reproducible_and_distinct():
    seeds = episode_seeds(11, 5)
    assert seeds == episode_seeds(11, 5)
    assert len(set(seeds)) == 5


def test_order_up_to_agent_stays_within_capacity():
    env = SeasonalInventoryEnv()
    obs, _ = env.reset(seed=0)
    agent = OrderUpToAgent(service_level=0.99)
    action = agent.get_action(obs, env)
    assert (action >= 0).all()
    assert action.sum() <= env.catalog.params.max_inventory
    # Empty warehouse: orders equal the targets for the next round
    np.testing.assert_array_equal(action, agent.target_levels(env, 0))


def test_random_agent_actions_validate():
    env = SeasonalInventoryEnv(num_periods=20)
    obs, _ = env.reset(seed=2)
    agent = RandomAgent(max_fraction=1.0, seed=2)
    for _ in range(20):
        obs, *_ = env.step(agent.get_action(obs, env))


def test_evaluate_agent_summary():
    result = evaluate_agent(ZeroAgent(), ENV_CONFIG, n_episodes=3, seed=1, collect_details=True)
    summary = result['summary']
    assert len(summary) == 3
    assert (summary['Steps'] == 6).all()
    # Nothing is ever ordered or stored, so every unit of demand goes unmet
    assert (summary["TotalUnmet"] > 0).all()
    assert (summary["FillRate"] == 0.0).all()
    assert (summary['TotalOrderCost'] == 0).all()
    assert len(result['details']) == 18


def test_run_benchmark_parallel_matches_sequential():
    agents = [ZeroAgent(), OrderUpToAgent(0.9)]
    sequential = run_benchmark(agents, ENV_CONFIG, n_episodes=2, seed=4)
    parallel = run_benchmark(agents, ENV_CONFIG, n_episodes=2, seed=4, max_workers=2)
    for a, b in zip(sequential, parallel):
        assert a['summary'].drop(columns='Time').equals(b['summary'].drop(columns='Time'))

    summary = summarize_results(parallel)
    assert set(summary.index) == {"Zero", "OrderUpTo_SL=0.90"}
    assert summary['AvgReward'].is_monotonic_decreasing
    assert summary.loc["OrderUpTo_SL=0.90", "AvgFillRate"] > summary.loc["Zero", "AvgFillRate"]


def test_summarize_empty():
    assert summarize_results([]).empty


def test_plot_benchmark_results_leaves_backend_alone(tmp_path, monkeypatch):
    import matplotlib

    backend_changes = []
    monkeypatch.setattr(matplotlib, "use", lambda *args, **kwargs: backend_changes.append(args))
    results = run_benchmark([ZeroAgent(), OrderUpToAgent(0.9)], ENV_CONFIG, n_episodes=2, seed=4)
    raw = pd.concat([r['summary'] for r in results], ignore_index=True)

    paths = plot_benchmark_results(summarize_results(results), raw, results_dir=str(tmp_path))
    assert backend_changes == []
    assert len(paths) == 2
    assert all(os.path.exists(p) for p in paths)
