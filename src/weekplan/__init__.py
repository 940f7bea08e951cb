"""
weekplan: a calm weekly task planner.

Subpackages:
- core: calendar helpers, ports, errors, reconciliation controller
- tasks: task model, identity-scoped task store, carry-forward engine
- storage / auth: concrete adapters (SQLite records, local identity)
- connectors / cli: console presenter, REPL and entrypoint
"""

__version__ = "0.1.0"
