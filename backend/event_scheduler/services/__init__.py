"""
Services Layer

Scheduling and progression logic for events:
- generator / allocator are pure: snapshot in, matches and placements out
- schedule_orchestrator and progression own the transaction and the event lock
- Nothing here depends on HTTP request/response objects
"""
