"""
Hyperparameter Configuration for DQN Training.

Central control panel for the baseline agents and the DQN pipeline. The
defaults are the settings of a full overnight run; pass `--timesteps` on the
command line for quick smoke tests instead of editing this file.
"""

import torch

# --- System Configuration ---
# Auto-detect CUDA for GPU acceleration; fallback to CPU for compatibility.
DEVICE = torch.device("cuda" if torch.cuda.is_available() else "cpu")

# Safety cap to prevent infinite loops in broken agents or stuck states
MAX_STEPS_PER_EPISODE = 5000

# --- Logging ---
BASE_LOG_DIR = "logs"
EPISODE_INFO_KEYWORDS = ("score", "max_tile")

# --- Training Loop ---
TOTAL_TIMESTEPS = 1_000_000
CHECKPOINT_FREQ = 100_000

# --- DQN ---
BUFFER_SIZE = 100_000       # Size of the replay buffer
LEARNING_RATE = 1e-4
BATCH_SIZE = 128
GAMMA = 0.99
TRAIN_FREQ = 4              # Trains the model every 4 steps
GRADIENT_STEPS = 1
TARGET_UPDATE_INTERVAL = 1000
EXPLORATION_FRACTION = 0.1  # 10% of training is exploration
EXPLORATION_FINAL_EPS = 0.05
NET_ARCH = [256, 256]

# --- Evaluation ---
EVAL_EPISODES = 100
