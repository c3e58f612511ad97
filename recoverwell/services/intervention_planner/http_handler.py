"""Recovery engine HTTP handler.

Exposes risk assessment, stage tracking and crisis intervention over
HTTP. Views are async and call straight into the engine components.

User identifiers in path parameters are never logged; use hash_pii().
"""
import logging
import os
from typing import Optional

from flask import Flask, request, jsonify

from recoverwell.shared.database import (
    InMemoryCheckInRepository,
    InMemoryMilestoneRepository,
    InMemoryProfileRepository,
    ProfileNotFoundError,
    load_seed,
)
from recoverwell.shared.models import RiskLevel, TriggerType
from recoverwell.shared.utils import hash_pii, configure_pii_salt_from_env
from recoverwell.services.llm_service import (
    EndpointConfig,
    EndpointTextGenerator,
    TemplatePromptAnonymizer,
)
from recoverwell.services.risk_assessor import RiskAssessor
from recoverwell.services.stage_tracker import RecoveryStageTracker
from .config import InterventionConfig
from .planner import CrisisInterventionPlanner

logger = logging.getLogger(__name__)

SERVICE_NAME = "recoverwell-engine"


class InvalidRequest(ValueError):
    """Request body or parameters could not be parsed."""


def _parse_enum(enum_cls, payload: dict, key: str):
    raw = payload.get(key)
    if raw is None:
        return None
    try:
        return enum_cls(raw)
    except ValueError:
        raise InvalidRequest(f"Invalid {key}: {raw}")


def create_app(
    assessor: RiskAssessor,
    tracker: RecoveryStageTracker,
    planner: CrisisInterventionPlanner,
) -> Flask:
    """Create the Flask app around already-wired engine components.

    Args:
        assessor: Risk Assessor
        tracker: Stage Tracker
        planner: Crisis Intervention Planner

    Returns:
        Flask application
    """
    app = Flask(__name__)

    @app.errorhandler(InvalidRequest)
    def invalid_request(e):
        logger.warning("REQUEST_INVALID", extra={"reason": str(e)})
        return jsonify({"error": str(e)}), 400

    @app.errorhandler(ProfileNotFoundError)
    def profile_not_found(e):
        logger.warning("PROFILE_NOT_FOUND_HTTP", extra={"user_id_hash": e.user_id_hash})
        return jsonify({"error": "Recovery profile not found"}), 404

    @app.route("/health", methods=["GET"])
    def health():
        """Health check endpoint."""
        return jsonify({
            "status": "healthy",
            "service": SERVICE_NAME,
        }), 200

    @app.route("/ready", methods=["GET"])
    def ready():
        """Readiness check - verifies all components are wired."""
        if assessor is None or tracker is None or planner is None:
            return jsonify({"status": "not_ready"}), 503
        return jsonify({"status": "ready"}), 200

    @app.route("/users/<user_id>/risk", methods=["GET"])
    async def assess_risk(user_id: str):
        """Assess current crisis risk.

        Response:
            RiskAssessment.to_dict(); 404 if the user has no profile
        """
        try:
            assessment = await assessor.assess_crisis_risk(user_id)
        except ProfileNotFoundError:
            raise
        except Exception as e:
            logger.error("RISK_HTTP_ERROR", extra={"user_id_hash": hash_pii(user_id), "error": str(e)})
            return jsonify({"error": "Failed to assess risk"}), 500
        return jsonify(assessment.to_dict()), 200

    @app.route("/users/<user_id>/risk/immediate", methods=["GET"])
    async def immediate_crisis(user_id: str):
        crisis = await assessor.detect_immediate_crisis(user_id)
        return jsonify({"immediate_crisis": crisis}), 200

    @app.route("/users/<user_id>/risk/patterns", methods=["GET"])
    async def risk_patterns(user_id: str):
        patterns = await assessor.get_risk_patterns(user_id)
        return jsonify({
            "count": len(patterns),
            "patterns": [p.to_dict() for p in patterns],
        }), 200

    @app.route("/users/<user_id>/stage/evaluate", methods=["POST"])
    async def evaluate_stage(user_id: str):
        """Evaluate stage progression and apply any transition.

        Response:
            {"transition": StageTransition.to_dict() | null}
        """
        try:
            transition = await tracker.evaluate_stage_progression(user_id)
        except ProfileNotFoundError:
            raise
        except Exception as e:
            logger.error("STAGE_HTTP_ERROR", extra={"user_id_hash": hash_pii(user_id), "error": str(e)})
            return jsonify({"error": "Failed to evaluate stage"}), 500
        return jsonify({"transition": transition.to_dict() if transition else None}), 200

    @app.route("/users/<user_id>/stage/metrics", methods=["GET"])
    async def stage_metrics(user_id: str):
        try:
            metrics = await tracker.get_stage_metrics(user_id)
        except ProfileNotFoundError:
            raise
        except Exception as e:
            logger.error("STAGE_HTTP_ERROR", extra={"user_id_hash": hash_pii(user_id), "error": str(e)})
            return jsonify({"error": "Failed to load stage metrics"}), 500
        return jsonify(metrics.to_dict()), 200

    @app.route("/users/<user_id>/stage/progression", methods=["GET"])
    async def stage_progression(user_id: str):
        try:
            progression = await tracker.get_recovery_progression(user_id)
        except ProfileNotFoundError:
            raise
        except Exception as e:
            logger.error("STAGE_HTTP_ERROR", extra={"user_id_hash": hash_pii(user_id), "error": str(e)})
            return jsonify({"error": "Failed to load recovery progression"}), 500
        return jsonify(progression.to_dict()), 200

    @app.route("/users/<user_id>/interventions", methods=["POST"])
    async def provide_intervention(user_id: str):
        """Provide a crisis intervention.

        Request Body (optional):
            {
                "trigger_type": "anxiety",
                "severity": "high"
            }

        Response:
            Intervention.to_dict(), 201
        """
        data = request.get_json(silent=True) or {}
        trigger_type = _parse_enum(TriggerType, data, "trigger_type")
        severity = _parse_enum(RiskLevel, data, "severity")

        intervention = await planner.provide_crisis_intervention(
            user_id, trigger_type=trigger_type, severity=severity
        )
        return jsonify(intervention.to_dict()), 201

    @app.route("/users/<user_id>/interventions/check", methods=["POST"])
    async def check_intervention(user_id: str):
        intervention = await planner.check_for_crisis_intervention(user_id)
        return jsonify({
            "intervention": intervention.to_dict() if intervention else None,
        }), 200

    @app.route("/interventions/<intervention_id>/follow-up", methods=["POST"])
    async def follow_up(intervention_id: str):
        try:
            record = await planner.provide_crisis_follow_up(intervention_id)
        except Exception as e:
            logger.error("FOLLOW_UP_HTTP_ERROR", extra={"intervention_id": intervention_id, "error": str(e)})
            return jsonify({"error": "Failed to create follow-up"}), 500
        return jsonify(record.to_dict()), 201

    return app


def build_local_app(seed_path: Optional[str] = None) -> Flask:
    """Wire the engine over in-memory stores for local runs.

    The stores start empty, so every user is unknown (404 or emergency
    fallback) unless seed data is loaded from `seed_path`, which defaults
    to RECOVERWELL_SEED_FILE. Text generation is enabled when
    RECOVERWELL_TEXT_ENDPOINT is set.
    """
    profiles = InMemoryProfileRepository()
    check_ins = InMemoryCheckInRepository()
    milestones = InMemoryMilestoneRepository()

    seed_path = seed_path or os.getenv("RECOVERWELL_SEED_FILE")
    if seed_path:
        load_seed(seed_path, profiles, check_ins, milestones)

    generator = None
    anonymizer = None
    endpoint_config = EndpointConfig.from_env()
    if endpoint_config is not None:
        generator = EndpointTextGenerator(endpoint_config)
        anonymizer = TemplatePromptAnonymizer()

    assessor = RiskAssessor(profiles=profiles, check_ins=check_ins)
    tracker = RecoveryStageTracker(profiles=profiles, check_ins=check_ins, milestones=milestones)
    planner = CrisisInterventionPlanner(
        assessor=assessor,
        profiles=profiles,
        check_ins=check_ins,
        generator=generator,
        anonymizer=anonymizer,
        config=InterventionConfig.from_env(),
    )
    return create_app(assessor, tracker, planner)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    configure_pii_salt_from_env(allow_dev_default=True)
    port = int(os.getenv("PORT", "8010"))
    build_local_app().run(host="0.0.0.0", port=port, debug=False)
