#!/usr/bin/env python3
"""
Speakeasy - Recorded Video Responses
====================================
Run: python3 -m speakeasy.app
Then point the frontend at: http://localhost:3001
"""

import logging

from flask import Flask, jsonify
from flask_cors import CORS

from speakeasy.config import config
from speakeasy.routes import register_routes
from speakeasy.services.media_transfer import MediaTransferAgent, SupabaseBackupStorage
from speakeasy.services.submission_coordinator import SubmissionCoordinator
from speakeasy.services.submission_store import SupabaseSubmissionStore

logger = logging.getLogger(__name__)


def create_supabase_client(cfg=config):
    """Create the Supabase client shared by the row store and the bucket."""
    from supabase import create_client
    if not cfg.supabase_url or not cfg.supabase_service_key:
        raise RuntimeError(
            "Supabase credentials not configured. Check SUPABASE_URL and SUPABASE_SERVICE_KEY in .env"
        )
    return create_client(cfg.supabase_url, cfg.supabase_service_key)


def build_coordinator(cfg=config, client=None) -> SubmissionCoordinator:
    """Wire store, backup storage and analysis dispatch from configuration."""
    client = client or create_supabase_client(cfg)
    store = SupabaseSubmissionStore(client)

    transfer = None
    if cfg.analysis_webhook_url:
        transfer = MediaTransferAgent(
            cfg.analysis_webhook_url,
            SupabaseBackupStorage(client, cfg.video_bucket),
            timeout=cfg.analysis_timeout,
        )
    else:
        logger.warning("ANALYSIS_WEBHOOK_URL not set; the recording endpoint is disabled")

    return SubmissionCoordinator(store, transfer)


def create_app(coordinator: SubmissionCoordinator = None) -> Flask:
    logging.basicConfig(
        level=getattr(logging, str(config.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = Flask(__name__)
    CORS(app)

    if coordinator is None:
        coordinator = build_coordinator()
    register_routes(app, coordinator)

    @app.route('/health')
    def health():
        return jsonify({
            "status": "ok",
            "message": "Speakeasy API is running",
            "config": config.to_dict(),
        })

    return app


if __name__ == '__main__':
    app = create_app()
    logger.info("Server running on port %s", config.port)
    app.run(host=config.host, port=config.port, debug=config.debug)
