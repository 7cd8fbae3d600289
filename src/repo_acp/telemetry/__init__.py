"""Telemetry domain: decision logging and system events.

Structure:
    audit/      Decision logging (decisions.jsonl)
                - DecisionEventLogger: one event per authorization check
    system/     System operational logs (system.jsonl, stderr)
                - Store failures, policy load errors, startup events,
                  verbose request/response dumps
"""

__all__: list[str] = []
