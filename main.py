#!/usr/bin/env python3
"""
Main entry point for the Scheduling Intelligence Engine

Runs the API server or a single engine operation from the command line.
"""

import json
import logging
import sys

from config.settings import Config
from src.scheduler.smart_scheduler import SmartScheduler
from utils.errors import SchedulingEngineError
from utils.logger import SmartCalendarLogger

logger = logging.getLogger(__name__)


def run_server(host=None, port=None, model=None, debug=False):
    """Run the Flask API server"""
    from src.api.flask_server import SchedulingEngineAPI

    logger.info("Starting Scheduling Intelligence Engine...")

    try:
        api = SchedulingEngineAPI(model_name=model)
        api.run(host=host, port=port, debug=debug)
    except KeyboardInterrupt:
        logger.info("Server shutdown requested")


def _read_text(args) -> str:
    if args.text is not None:
        return args.text
    if args.file:
        with open(args.file, 'r') as f:
            return f.read()
    return sys.stdin.read()


def _write_result(result, output_file=None):
    payload = json.dumps(result, indent=2)
    if output_file:
        with open(output_file, 'w') as f:
            f.write(payload)
        logger.info(f"Result written to {output_file}")
    else:
        print(payload)


def run_command(args) -> int:
    scheduler = SmartScheduler(model_name=args.model)

    if args.command == 'parse':
        context = None
        if args.context:
            with open(args.context, 'r') as f:
                context = json.load(f)
        result = scheduler.parse_query(_read_text(args), context).to_dict()

    elif args.command == 'analyze-email':
        if args.actions:
            result = scheduler.plan_email_actions(_read_text(args))
        else:
            result = scheduler.analyze_email(_read_text(args)).to_dict()

    elif args.command == 'recommend':
        with open(args.input_file, 'r') as f:
            request_data = json.load(f)
        slots = scheduler.recommend_slots(
            request_data.get("request"),
            request_data.get("busyIntervals"),
            request_data.get("preferences"),
        )
        result = {"slots": [slot.to_dict() for slot in slots]}

    else:
        return 2

    _write_result(result, args.output)
    return 0


def main(argv=None):
    """Main CLI entry point"""
    import argparse

    parser = argparse.ArgumentParser(description='Scheduling Intelligence Engine')
    parser.add_argument('--log-level', default=Config.LOG_LEVEL, help='Logging level')
    parser.add_argument('--log-file', help='Also write logs to this file')
    parser.add_argument('--model', help='Oracle model name (when the oracle is enabled)')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Server command
    server_parser = subparsers.add_parser('server', help='Run API server')
    server_parser.add_argument('--host', default=Config.API_HOST, help='Host to bind to')
    server_parser.add_argument('--port', type=int, default=Config.API_PORT, help='Port to bind to')
    server_parser.add_argument('--debug', action='store_true', help='Enable debug mode')

    # Parse command
    parse_parser = subparsers.add_parser('parse', help='Parse a calendar query')
    parse_parser.add_argument('text', nargs='?', help='Query text (default: stdin)')
    parse_parser.add_argument('--file', help='Read the query from a file')
    parse_parser.add_argument('--context', help='JSON file with the previous turn context')
    parse_parser.add_argument('--output', help='Output JSON file')

    # Email command
    email_parser = subparsers.add_parser('analyze-email', help='Analyze an email for scheduling intent')
    email_parser.add_argument('text', nargs='?', help='Email text (default: stdin)')
    email_parser.add_argument('--file', help='Read the email from a file')
    email_parser.add_argument('--actions', action='store_true', help='Include suggested actions')
    email_parser.add_argument('--output', help='Output JSON file')

    # Recommend command
    recommend_parser = subparsers.add_parser('recommend', help='Recommend meeting slots')
    recommend_parser.add_argument('input_file',
                                  help='JSON file with "request", optional "busyIntervals" and "preferences"')
    recommend_parser.add_argument('--output', help='Output JSON file')

    args = parser.parse_args(argv)
    # One-shot commands print JSON on stdout, so their logs go to stderr
    log_stream = sys.stdout if args.command == 'server' else sys.stderr
    SmartCalendarLogger.setup_logging(log_level=args.log_level, log_file=args.log_file,
                                      stream=log_stream)

    if args.command == 'server':
        run_server(host=args.host, port=args.port, model=args.model, debug=args.debug)
        return 0

    if args.command is None:
        parser.print_help()
        return 1

    try:
        return run_command(args)
    except SchedulingEngineError as e:
        logger.error(f"❌ {e.code}: {e.message}")
        print(json.dumps(e.to_dict(), indent=2), file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
