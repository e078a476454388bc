'''
Rollout driver and benchmark for the seasonal inventory environment.

Each agent is evaluated on the same sequence of episode seeds. Seeds are
derived from one root seed with `np.random.SeedSequence.spawn`, so every
episode has an independent, reproducible demand stream. Agents may be
evaluated concurrently; each evaluation owns its own environment.
'''

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from .agents import BaseAgent, OrderUpToAgent, RandomAgent, ZeroAgent
from .env import SeasonalInventoryEnv

logger = logging.getLogger(__name__)

# --- Configuration ---
N_EVAL_EPISODES = 30
SEED = 5000
RESULTS_DIR = "./benchmark_results_SeasonalInv/"
ENV_CONFIG = {
    'num_periods': 24,
    'discount': 0.99,
}


def episode_seeds(seed: int, n_episodes: int) -> List[int]:
    """ Independent integer seeds for `n_episodes` episodes. """
    children = np.random.SeedSequence(seed).spawn(n_episodes)
    return [int(child.generate_state(1)[0]) for child in children]


def evaluate_agent(agent: BaseAgent,
                   env_config: Optional[dict] = None,
                   n_episodes: int = N_EVAL_EPISODES,
                   seed: int = SEED,
                   collect_details: bool = False) -> Dict:
    '''
    Runs `n_episodes` full episodes and returns per-episode summaries.

    Returns a dict with 'summary' (DataFrame, one row per episode) and
    'details' (concatenated `env.history()` frames, empty unless
    `collect_details`).
    '''
    env = SeasonalInventoryEnv(env_config=dict(env_config or {}))
    episode_summaries = []
    details = []

    logger.info("Evaluating %s for %d episodes", agent.name, n_episodes)
    for i, episode_seed in enumerate(episode_seeds(seed, n_episodes)):
        obs, info = env.reset(seed=episode_seed)
        agent.reset(seed=episode_seed)
        terminated = truncated = False
        episode_reward = 0.0
        steps = 0

        start_time = time.perf_counter()
        while not terminated and not truncated:
            action = agent.get_action(obs, env)
            obs, reward, terminated, truncated, info = env.step(action)
            episode_reward += reward
            steps += 1
        episode_time = time.perf_counter() - start_time

        hist = env.history()
        cols = env.commodities
        demand = hist[[f'demand_{c}' for c in cols]].to_numpy().sum()
        unmet = hist[[f'unmet_{c}' for c in cols]].to_numpy().sum()
        episode_summaries.append({
            "Agent": agent.name,
            "Episode": i + 1,
            "Seed": episode_seed,
            "TotalReward": episode_reward,
            "Steps": steps,
            "Time": episode_time,
            "FillRate": 1 - unmet / demand if demand > 0 else 1.0,
            "TotalUnmet": unmet,
            "AvgStock": hist[[f'stock_end_{c}' for c in cols]].sum(axis=1).mean(),
            "TotalOrderCost": hist['order_cost'].sum(),
            "TotalStorageCost": hist['storage_cost'].sum(),
        })
        if collect_details:
            hist.insert(0, 'Agent', agent.name)
            hist.insert(1, 'Episode', i + 1)
            details.append(hist)
        logger.debug("  Ep %d/%d: reward=%.2f", i + 1, n_episodes, episode_reward)

    env.close()
    return {
        'summary': pd.DataFrame(episode_summaries),
        'details': pd.concat(details, ignore_index=True) if details else pd.DataFrame(),
    }


def run_benchmark(agents: Sequence[BaseAgent],
                  env_config: Optional[dict] = None,
                  n_episodes: int = N_EVAL_EPISODES,
                  seed: int = SEED,
                  max_workers: int = 1,
                  collect_details: bool = False) -> List[Dict]:
    """ Evaluates each agent on the same episode seeds; agents run in a thread pool when `max_workers > 1`. """
    def _evaluate(agent):
        return evaluate_agent(agent, env_config, n_episodes, seed, collect_details)

    if max_workers <= 1:
        return [_evaluate(agent) for agent in agents]
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        return list(pool.map(_evaluate, agents))


def summarize_results(all_eval_results: List[Dict]) -> pd.DataFrame:
    """ Aggregates episode summaries per agent, best average reward first. """
    frames = [res['summary'] for res in all_eval_results if not res['summary'].empty]
    if not frames:
        return pd.DataFrame()
    raw = pd.concat(frames, ignore_index=True)
    summary = raw.groupby("Agent").agg(
        AvgReward=("TotalReward", "mean"), MedianReward=("TotalReward", "median"),
        StdReward=("TotalReward", "std"), MinReward=("TotalReward", "min"),
        MaxReward=("TotalReward", "max"), AvgFillRate=("FillRate", "mean"),
        AvgUnmet=("TotalUnmet", "mean"), AvgStock=("AvgStock", "mean"),
        AvgTimePerEp=("Time", "mean"), Episodes=("Episode", "count"))
    return summary.sort_values(by="AvgReward", ascending=False)


def plot_benchmark_results(df_summary: pd.DataFrame, df_raw_summary: pd.DataFrame,
                           results_dir: str = RESULTS_DIR) -> List[str]:
    """ Saves a reward box plot and a reward-vs-fill-rate scatter; returns the file paths. """
    import matplotlib.pyplot as plt
    import seaborn as sns

    os.makedirs(results_dir, exist_ok=True)
    paths = []
    order = df_summary.index
    n = df_summary.shape[0]

    plt.figure(figsize=(10, max(4, n * 0.6)))
    sns.boxplot(data=df_raw_summary, x="TotalReward", y="Agent", order=order, showfliers=False)
    plt.title("Reward Distribution (SeasonalInv)")
    plt.xlabel("Total Discounted Reward")
    plt.tight_layout()
    p = os.path.join(results_dir, "SeasonalInv_benchmark_rewards_boxplot.png")
    plt.savefig(p)
    plt.close()
    paths.append(p)

    plt.figure(figsize=(9, 7))
    sns.scatterplot(data=df_summary.reset_index(), x="AvgFillRate", y="AvgReward", hue="Agent", s=100, legend=False)
    for name, r in df_summary.iterrows():
        plt.text(r["AvgFillRate"] + 0.005, r["AvgReward"], name, fontsize=9)
    plt.title("Reward vs. Fill Rate (SeasonalInv)")
    plt.xlabel("Avg Fill Rate")
    plt.ylabel("Avg Reward")
    plt.grid(True)
    plt.tight_layout()
    p = os.path.join(results_dir, "SeasonalInv_benchmark_reward_vs_fill_rate.png")
    plt.savefig(p)
    plt.close('all')
    paths.append(p)
    return paths


# --- Main Execution ---
if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    import matplotlib
    matplotlib.use("Agg") # files only, no display

    agents = [
        ZeroAgent(),
        RandomAgent(max_fraction=0.25),
        RandomAgent(max_fraction=0.5),
        OrderUpToAgent(service_level=0.8),
        OrderUpToAgent(service_level=0.95),
    ]
    results = run_benchmark(agents, ENV_CONFIG, N_EVAL_EPISODES, SEED, max_workers=len(agents))
    summary = summarize_results(results)

    print("\n--- Benchmark Summary ---")
    pd.set_option('display.float_format', lambda x: '%.2f' % x)
    print(summary)

    raw = pd.concat([r['summary'] for r in results], ignore_index=True)
    for p in plot_benchmark_results(summary, raw):
        print(f"Saved: {p}")
