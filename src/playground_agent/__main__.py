"""Run the worker with `python -m playground_agent`."""

from playground_agent.agent import main

main()
