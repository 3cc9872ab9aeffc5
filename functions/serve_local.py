#!/usr/bin/env python3
"""Local development server for FlacronBuild Python functions.

This server mimics the Firebase Functions emulator endpoints and adds
project seeding for the in-memory store.

Usage:
    cd functions
    source venv/bin/activate
    python serve_local.py

This will start a Flask server that handles:
- POST /api/projects                         -> seed a project (in-memory store)
- GET  /api/projects/<id>                    -> read a project
- POST /api/projects/<id>/estimate           -> api function
- GET  /api/projects/<id>/estimates          -> api function
- GET  /api/projects/<id>/estimate/latest    -> api function
- GET  /api/projects/<id>/cost-breakdown     -> api function
"""

import asyncio
import os
import sys

# Set environment for local development
os.environ.setdefault('FUNCTIONS_EMULATOR', 'true')
os.environ.setdefault('GCLOUD_PROJECT', 'flacronbuild-dev')
os.environ.setdefault('PERSISTENCE_BACKEND', 'memory')

from flask import Flask, request, jsonify
from flask_cors import CORS

from config.settings import settings
from config.errors import ConfigurationError

try:
    settings.validate()
except ConfigurationError as e:
    print(f"Configuration error: {e.message} ({e.setting})", file=sys.stderr)
    sys.exit(1)

# Import the main module after setting env vars
from main import api, get_service
from services.repositories import InMemoryProjectRepository

app = Flask(__name__)
CORS(app)


class MockRequest:
    """Mock Firebase request object to wrap Flask request."""

    def __init__(self, flask_request):
        self._request = flask_request
        self._json_data = None
        self.method = flask_request.method
        self.path = flask_request.path
        self.headers = dict(flask_request.headers)

    def get_json(self, force=False, silent=False):
        if self._json_data is None:
            self._json_data = self._request.get_json(force=force, silent=silent) or {}
        return self._json_data


def wrap_firebase_function(firebase_fn):
    """Wrap a Firebase function to work with Flask."""
    def wrapper(**_path_params):
        mock_req = MockRequest(request)
        response = firebase_fn(mock_req)
        # Firebase Response has response_value, status, headers
        return response.get_data(), response.status_code, dict(response.headers)
    return wrapper


def _project_store() -> InMemoryProjectRepository:
    projects = get_service().projects
    if not isinstance(projects, InMemoryProjectRepository):
        raise RuntimeError("Project seeding requires PERSISTENCE_BACKEND=memory")
    return projects


# Project seeding (local only)
@app.route('/api/projects', methods=['POST'])
def handle_create_project():
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        return jsonify({'message': 'Invalid project data'}), 400
    project = asyncio.run(_project_store().create_project(data))
    return jsonify(project), 201


@app.route('/api/projects/<project_id>', methods=['GET'])
def handle_get_project(project_id):
    project = asyncio.run(get_service().projects.get_project(project_id))
    if project is None:
        return jsonify({'message': 'Project not found'}), 404
    return jsonify(project)


# Estimate endpoints (same handler as the deployed `api` function)
handle_api = wrap_firebase_function(api)
for rule, methods in [
    ('/api/projects/<project_id>/estimate', ['POST', 'OPTIONS']),
    ('/api/projects/<project_id>/estimates', ['GET', 'OPTIONS']),
    ('/api/projects/<project_id>/estimate/latest', ['GET', 'OPTIONS']),
    ('/api/projects/<project_id>/cost-breakdown', ['GET', 'OPTIONS']),
]:
    app.add_url_rule(rule, endpoint=rule, view_func=handle_api, methods=methods)


# Health check
@app.route('/health', methods=['GET'])
def health():
    return jsonify({'status': 'ok', 'service': 'flacronbuild-python-functions'})


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5002))
    print(f"""
╔════════════════════════════════════════════════════════════════╗
║  FlacronBuild Python Functions - Local Development Server      ║
╠════════════════════════════════════════════════════════════════╣
║                                                                ║
║  Server running on: http://127.0.0.1:{port}                     ║
║                                                                ║
║  Endpoints:                                                    ║
║  • POST /api/projects                                          ║
║  • GET  /api/projects/<id>                                     ║
║  • POST /api/projects/<id>/estimate                            ║
║  • GET  /api/projects/<id>/estimates                           ║
║  • GET  /api/projects/<id>/estimate/latest                     ║
║  • GET  /api/projects/<id>/cost-breakdown                      ║
║                                                                ║
╚════════════════════════════════════════════════════════════════╝
""")
    app.run(host='127.0.0.1', port=port, debug=True, threaded=True)
