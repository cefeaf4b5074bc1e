"""Release authorization pipeline.

- version: tag reference to version derivation
- branch, manifest, build: the independent gates
- publish, secrets: the single irreversible step and its credential
- orchestrator: state machine sequencing all of the above
- service: wiring of the production collaborators
"""

from __future__ import annotations
