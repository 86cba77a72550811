import json
import subprocess
import os
import sys
import tempfile
import matplotlib.pyplot as plt
import numpy as np

# Configuration
BASE_CONFIG = "stabilization_engine/config_monte_carlo.json"
M_VALUES = [1, 2, 5, 10, 20, 40, 80, 160]
OUTPUT_BASE = "results_m_sweep"

results = []

print(f"{'M':<8} | {'Mean steps':<12} | {'95% CI':<22} | {'Converged':<10}")
print("-" * 62)

for m in M_VALUES:
    with open(BASE_CONFIG, 'r') as f:
        config = json.load(f)

    config['m'] = m
    tmp_fd, temp_config_path = tempfile.mkstemp(suffix=f"_m{m}.json", prefix="stabilization_")
    with os.fdopen(tmp_fd, 'w') as f:
        json.dump(config, f)

    output_dir = os.path.join(OUTPUT_BASE, f"m_{m}")
    cmd = [sys.executable, "-m", "stabilization_engine.runner", temp_config_path, "--output-dir", output_dir]
    proc = subprocess.run(cmd, capture_output=True, text=True)
    if proc.returncode != 0:
        print(f"  [WARNING] subprocess failed for M={m} (exit {proc.returncode}):")
        for line in proc.stderr.strip().splitlines()[-5:]:
            print(f"    {line}")

    summary_path = os.path.join(output_dir, "summary.json")
    try:
        with open(summary_path, 'r') as f:
            summary = json.load(f)

        mean_steps = summary.get('mean_steps')
        ci_low = summary.get('ci_95_low')
        ci_high = summary.get('ci_95_high')
        rate = summary.get('convergence_rate', 0.0)

        # None when no trial (or a single trial) converged under the step cap
        mean_steps = float('nan') if mean_steps is None else mean_steps
        ci_low = float('nan') if ci_low is None else ci_low
        ci_high = float('nan') if ci_high is None else ci_high

        results.append((m, mean_steps, ci_low, ci_high, rate))
        ci = f"[{ci_low:.1f}, {ci_high:.1f}]"
        print(f"{m:<8} | {mean_steps:<12.1f} | {ci:<22} | {rate:<10.2%}")
    except (OSError, json.JSONDecodeError) as e:
        print(f"Error for M={m}: {e}")

    if os.path.exists(temp_config_path):
        os.remove(temp_config_path)

# Plotting
if results:
    ms, means, lows, highs, rates = zip(*results)
    means = np.array(means)
    err = np.vstack([means - np.array(lows), np.array(highs) - means])

    plt.figure(figsize=(12, 5))
    plt.subplot(1, 2, 1)
    plt.errorbar(ms, means, yerr=err, marker='o', color='blue', capsize=3)
    plt.xscale('log')
    plt.title('Mean steps to legal configuration')
    plt.xlabel('Leader increment (M)')
    plt.ylabel('Steps')
    plt.grid(True)

    plt.subplot(1, 2, 2)
    plt.plot(ms, rates, marker='s', color='red')
    plt.xscale('log')
    plt.title('Convergence rate under step cap')
    plt.xlabel('Leader increment (M)')
    plt.ylabel('Fraction converged')
    plt.grid(True)

    plt.tight_layout()
    plt.savefig("m_sweep_results.png")
    plt.show()
