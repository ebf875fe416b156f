"""
Core building blocks shared by the task subsystem.

- errors.py: caller-facing exception taxonomy
- ports.py: Protocols for work functions, progress reporters and observers
"""
