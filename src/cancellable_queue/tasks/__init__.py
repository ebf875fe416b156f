"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus, TaskEvent, ClearEvent)
- registry.py: process registry, folds events into the identity -> Task mapping
- aggregator.py: single event consumer, publishes snapshots to observers
- admission.py: records submissions as pending
- task_scheduler.py: FIFO admission bounded by max_concurrency
- runner.py: drives one task's work function, progress reporting
- cancellation.py: cancel by identity
- task_queue.py: TaskQueue facade wiring the above together
- task_api.py: small high-level helpers
- simulated.py: simulated staged transfer used by the console demo
"""
