"""VoiceDeck-AI.

This package contains the tool runtime of a voice-driven assistant: the
remote speech model calls tools whose bodies are user-authored scripts, and
those scripts act on the application through capabilities published by the
mounted UI pieces.

Core subpackages
----------------

- ``voicedeck_ai.core``: settings (``pydantic-settings``) and logging setup.
- ``voicedeck_ai.tool_runtime``:

  - Capability registry and execution context construction.
  - Script compilation with a bounded binding set.
  - Tool catalog loading, global parameters and initialization tools.
  - The session event bus and lifecycle coordinator.
"""
