"""Recoverwell engine services.

- risk_assessor: relapse/crisis risk scoring and pattern mining
- stage_tracker: recovery stage state machine and forecasts
- intervention_planner: intervention selection, composition and follow-up
- content_library: static coping, grounding and resource tables
- llm_service: contracts for external text generation collaborators

Safety-critical paths (risk detection, crisis intervention) degrade to
conservative results instead of raising. Coaching-cadence paths (stage
tracking) propagate errors.
"""
