"""
Flask API server for the Scheduling Intelligence Engine
"""
import logging
import time
from datetime import datetime

from flask import Flask, request, jsonify
from flask_cors import CORS

from config.settings import Config
from src.scheduler.smart_scheduler import SmartScheduler
from utils.errors import SchedulingEngineError, ValidationError

logger = logging.getLogger(__name__)


class SchedulingEngineAPI:
    """
    JSON endpoints over the SmartScheduler facade
    """

    def __init__(self, model_name: str = None, scheduler: SmartScheduler = None):
        self.config = Config()
        self.app = Flask(__name__)
        CORS(self.app)  # Enable CORS for cross-origin requests

        self.scheduler = scheduler or SmartScheduler(model_name)

        self._setup_routes()

    def _json_body(self):
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("No JSON object provided")
        return data

    def _required_string(self, data, field):
        value = data.get(field)
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"Missing required field: {field}")
        return value

    def _setup_routes(self):
        """Setup Flask routes"""

        @self.app.route('/health', methods=['GET'])
        def health_check():
            """Health check endpoint"""
            oracle = self.scheduler.llm_client
            return jsonify({
                "status": "healthy",
                "timestamp": datetime.now().isoformat(),
                "oracle_enabled": oracle is not None,
                "oracle_available": oracle.check_availability() if oracle is not None else False,
            })

        @self.app.route('/parse-query', methods=['POST'])
        def parse_query():
            data = self._json_body()
            query = self._required_string(data, "query")
            parsed = self.scheduler.parse_query(query, data.get("context"))
            return jsonify(parsed.to_dict())

        @self.app.route('/analyze-email', methods=['POST'])
        def analyze_email():
            data = self._json_body()
            email_text = self._required_string(data, "email")
            analysis = self.scheduler.analyze_email(email_text)
            return jsonify(analysis.to_dict())

        @self.app.route('/recommend-slots', methods=['POST'])
        def recommend_slots():
            start_time = time.time()
            data = self._json_body()
            slot_request = data.get("request")
            if not isinstance(slot_request, dict):
                raise ValidationError("Missing required field: request")

            slots = self.scheduler.recommend_slots(
                slot_request, data.get("busyIntervals"), data.get("preferences")
            )
            logger.info(f"✅ {len(slots)} slot(s) recommended in {time.time() - start_time:.2f}s")
            return jsonify({"slots": [slot.to_dict() for slot in slots]})

        @self.app.route('/email-actions', methods=['POST'])
        def email_actions():
            data = self._json_body()
            email_text = self._required_string(data, "email")
            return jsonify(self.scheduler.plan_email_actions(email_text, data.get("busyIntervals")))

        @self.app.route('/analyze-emails', methods=['POST'])
        def analyze_emails():
            data = self._json_body()
            emails = data.get("emails")
            if not isinstance(emails, list):
                raise ValidationError("Missing required field: emails")
            return jsonify(self.scheduler.process_email_batch(emails, data.get("busyIntervals")))

        @self.app.errorhandler(SchedulingEngineError)
        def engine_error(error):
            if error.status_code >= 500:
                logger.error(f"❌ {error.code}: {error.message}")
            else:
                logger.warning(f"⚠️  Rejected request: {error.message}")
            return jsonify(error.to_dict()), error.status_code

        @self.app.errorhandler(404)
        def not_found(error):
            return jsonify({"error": "Endpoint not found"}), 404

        @self.app.errorhandler(405)
        def method_not_allowed(error):
            return jsonify({"error": "Method not allowed"}), 405

        @self.app.errorhandler(500)
        def internal_error(error):
            return jsonify({"error": "Internal server error"}), 500

    def run(self, host=None, port=None, debug=False):
        """Run the Flask server"""
        host = host or self.config.API_HOST
        port = port or self.config.API_PORT

        logger.info(f"Starting Scheduling Engine API server on {host}:{port}")

        self.app.run(
            host=host,
            port=port,
            debug=debug,
            threaded=True,  # Enable threading for concurrent requests
            use_reloader=False
        )


def create_app(model_name: str = None, scheduler: SmartScheduler = None) -> Flask:
    """Factory function to create Flask app"""
    api = SchedulingEngineAPI(model_name, scheduler)
    return api.app
