"""
Core subsystem.

Components:
- week_utils.py: pure date arithmetic (week boundaries, day keys, labels)
- ports.py: protocols for identity, record storage and presentation
- errors.py: error taxonomy surfaced to the controller
- channel.py: async stream of full-collection snapshots
- controller.py: bootstrap sequencing and live-feed arbitration
- input_session.py: once-only submission latch for task input
"""
