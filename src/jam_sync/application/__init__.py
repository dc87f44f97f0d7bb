"""
Application Layer

Orchestrates domain objects and infrastructure ports to run a jam session
on a client.

Structure:
- interfaces/: Port interfaces for infrastructure adapters
- services/: Host controller, participant sync engine, queue projection,
  playback handle and session orchestration
"""
