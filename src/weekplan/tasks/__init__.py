"""
Task subsystem.

Components:
- task_models.py: Task dataclass and wire-record mapping
- task_store.py: identity-scoped CRUD + subscription facade
- carry_forward.py: rolls incomplete past tasks forward to today
"""
