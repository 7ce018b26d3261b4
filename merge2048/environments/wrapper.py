import gymnasium
from gymnasium import spaces
import numpy as np


class Log2Wrapper(gymnasium.ObservationWrapper):
    """
    Normalizes the observation space by converting raw tile values to their log2 representation.

    Rationale:
        Tile values scale exponentially (2^1 to 2^16). Feeding raw values
        (e.g., 2 vs 4096) into a neural network causes a large magnitude variance,
        leading to unstable gradients and slow convergence.

        This wrapper compresses the state space to a linear scale:
        - 2    -> 1.0
        - 2048 -> 11.0
        Empty cells stay at 0.0.

    Args:
        env (gymnasium.Env): The environment to wrap.
        policy_type (str): 'mlp' or 'cnn'. 'cnn' adds a leading channel axis,
                           the (Channel, Height, Width) format Conv2d layers expect.
    """
    def __init__(self, env, policy_type="mlp"):
        super().__init__(env)

        if policy_type not in ["mlp", "cnn"]:
            raise ValueError(f"Unknown policy_type: {policy_type}. Must be 'mlp' or 'cnn'.")

        self.policy_type = policy_type

        height, width = self.observation_space.shape
        if self.policy_type == "cnn":
            self.output_shape = (1, height, width)
        else:
            self.output_shape = (height, width)

        self.observation_space = spaces.Box(
            low=0.0,
            high=32.0,  # 2^32 is far beyond any reachable tile
            shape=self.output_shape,
            dtype=np.float32
        )

    def observation(self, obs):
        processed_obs = np.zeros(obs.shape, dtype=np.float32)

        # log2(0) = -inf, so only positive cells are transformed
        positive_mask = (obs > 0)
        processed_obs[positive_mask] = np.log2(obs[positive_mask])

        return processed_obs.reshape(self.output_shape)
