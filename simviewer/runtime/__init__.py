"""Runtime shell: terminal, input, background jobs, theme polling, and the loop."""
