"""
Core business layer

This package holds everything that mutates state:
- Repository: the entity store interface and its backends
- Managers: candidate pipeline and room/panel assignment
- Broadcaster: realtime fan-out of change events
"""
