"""
interfaces/web.py
──────────────────────────────────────────────────────────────────────────────
Flask HTTP API for the workforce task analyser.

Run:
  python -m workforce_intel.interfaces.web --port 8000
  # or, via the installed entry point
  workforce-serve --port 8000

Endpoints:
  POST /api/analyze/stream       {jobTitle, capabilityLevel} → text/event-stream
  POST /api/analyze              {jobTitle, capabilityLevel} → JobAnalysis JSON
  GET  /api/analyze              health / endpoint listing
  GET  /api/occupations/search   ?q=&limit= → ranked title suggestions
  GET  /api/stats                occupation / task / title counts

Error mapping (non-streaming endpoint): each WorkforceError carries its own
status_code (400 validation, 404 no occupation / no tasks, 502 classifier
failure, 503 classifier credentials).  The streaming endpoint always answers
200 and reports failures as a terminal ``error`` event.
"""
from __future__ import annotations

import argparse
import logging
from typing import Optional

from flask import Flask, Response, jsonify, request
from werkzeug.exceptions import HTTPException

from workforce_intel import __version__
from workforce_intel.config.settings import get_settings
from workforce_intel.domain.exceptions import WorkforceError
from workforce_intel.services.analysis import AnalysisOrchestrator, user_message
from workforce_intel.interfaces.sse import MIMETYPE, encode_event

logger = logging.getLogger(__name__)

_MAX_SEARCH_LIMIT = 50


def create_app(orchestrator: Optional[AnalysisOrchestrator] = None) -> Flask:
    """Build the Flask application.

    Args:
        orchestrator: Pre-built orchestrator (tests inject one).  When None,
                      the container singleton is built on first use.
    """
    app = Flask(__name__)
    app.config["ORCHESTRATOR"] = orchestrator

    def _orchestrator() -> AnalysisOrchestrator:
        if app.config["ORCHESTRATOR"] is None:
            from workforce_intel.services.container import get_orchestrator
            app.config["ORCHESTRATOR"] = get_orchestrator()
        return app.config["ORCHESTRATOR"]

    # ── Error handlers ─────────────────────────────────────────────────────

    @app.errorhandler(WorkforceError)
    def handle_workforce_error(exc: WorkforceError):
        return jsonify({"success": False, "error": user_message(exc)}), exc.status_code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        if isinstance(exc, HTTPException):
            return exc
        logger.exception("Unhandled API error")
        return jsonify({"success": False, "error": "An unexpected error occurred"}), 500

    # ── Analysis ───────────────────────────────────────────────────────────

    @app.post("/api/analyze/stream")
    def analyze_stream():
        payload = request.get_json(silent=True)
        orchestrator = _orchestrator()

        def generate():
            for event in orchestrator.stream(payload):
                yield encode_event(event)

        return Response(
            generate(),
            mimetype=MIMETYPE,
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    @app.post("/api/analyze")
    def analyze():
        payload = request.get_json(silent=True)
        analysis = _orchestrator().analyze(payload)
        return jsonify({"success": True, "data": analysis.to_dict()})

    @app.get("/api/analyze")
    def health():
        return jsonify(
            {
                "status": "ok",
                "message": "Workforce Task Intelligence API",
                "version": __version__,
                "endpoints": {
                    "POST /api/analyze": "Analyze a job title for automation exposure",
                    "POST /api/analyze/stream": "Same analysis as server-sent events",
                    "GET /api/occupations/search": "Search O*NET occupation titles",
                    "GET /api/stats": "Occupation data statistics",
                },
            }
        )

    # ── Lookup ─────────────────────────────────────────────────────────────

    @app.get("/api/occupations/search")
    def search_occupations():
        query = request.args.get("q", "")
        limit = request.args.get("limit", 10, type=int)
        limit = max(1, min(limit, _MAX_SEARCH_LIMIT))
        results = _orchestrator().matcher.search(query, limit)
        return jsonify(
            {"query": query, "results": [r.to_dict() for r in results]}
        )

    @app.get("/api/stats")
    def stats():
        orchestrator = _orchestrator()
        index = orchestrator.matcher.index
        return jsonify(
            {
                "totalOccupations": len(index),
                "totalTasks": orchestrator.task_store.task_count,
                "totalSearchableTerms": len(index.entries),
            }
        )

    return app


def main() -> None:
    """Entry point for the workforce-serve console script."""
    settings = get_settings()
    p = argparse.ArgumentParser(prog="workforce-serve", description="Run the analysis API.")
    p.add_argument("--host", default=settings.host, help=f"(default: {settings.host})")
    p.add_argument("--port", type=int, default=settings.port, help=f"(default: {settings.port})")
    p.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")
    args = p.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )

    app = create_app()
    app.run(host=args.host, port=args.port, threaded=True)


if __name__ == "__main__":
    main()
