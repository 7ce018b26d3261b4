import time

from merge2048.agents.evaluate import make_env
from merge2048.game.tile import Direction

env = make_env(render_mode="human")

print("Environment created.")
print(f"Action space: {env.action_space}")

print("\n--- STARTING RANDOM AGENT DEMO ---\n")
observation, info = env.reset()
terminated = False
truncated = False

total_reward = 0
step_count = 0

while not (terminated or truncated):

    # Picks random action
    action = env.action_space.sample()

    print(f"\n--- Step {step_count} ---")
    print(f"Action taken: {Direction(int(action)).name.title()}")

    # performs the action in the environment
    observation, reward, terminated, truncated, info = env.step(action)

    print(f"Reward received: {reward}")
    total_reward += reward
    step_count += 1

    time.sleep(0.2)


print("\n--- EPISODE/GAME FINISHED ---")
print(f"Total steps: {step_count}")
print(f"Total reward: {total_reward}")
print(f"Final score: {info['score']}, max tile: {info['max_tile']}")
