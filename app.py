#!/usr/bin/env python3
"""
Fitness Tracker - API server
Log activities ("Pushups - 40") and body weight; serve entries and the
dashboard summary (today's activities, monthly totals, PRs, weight chart)
"""

import os
import traceback
from datetime import datetime, timezone
from functools import wraps

from dateutil import tz
from dotenv import load_dotenv
from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

from aggregation import EntryLog, resolve_month
from database import check_db_connection, create_entry, get_db_url, init_db, list_entries
from entry_parser import StorageError, ValidationError, validate_entry_payload

load_dotenv()

app = Flask(__name__)
# Detect production environment (a hosted postgres DATABASE_URL or a Railway env var)
is_production_env = (
    os.getenv('DATABASE_URL') is not None and 'postgres' in os.getenv('DATABASE_URL', '').lower()
) or os.getenv('RAILWAY_ENVIRONMENT') is not None or os.getenv('TRUST_PROXY') is not None

# Trust the hosting proxy's headers
if is_production_env:
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=1)

# The static frontend is served from a different origin in development
CORS(app, resources={r"/api/*": {"origins": os.getenv('CORS_ORIGINS', '*').split(',')}})

# Keep JSON keys in insertion order (the wire shape starts with _id)
app.json.sort_keys = False

PORT = int(os.getenv('PORT', '3000'))

# Timezone used for "today" and month boundaries when the request doesn't pass one
DEFAULT_TIMEZONE = os.getenv('FITNESS_TIMEZONE', '')

# Exercises always shown in monthly totals (0 when nothing logged)
TRACKED_EXERCISES = [
    name.strip().lower()
    for name in os.getenv('TRACKED_EXERCISES', 'pushups,squats').split(',')
    if name.strip()
]

# Initialize database on startup
try:
    if check_db_connection():
        init_db()
        print("✓ Database initialized")
        USE_DATABASE = True
    else:
        print("⚠ Database not available, API requests will fail until it is reachable")
        USE_DATABASE = False
except Exception as e:
    print(f"⚠ Database initialization failed: {e}")
    USE_DATABASE = False

# ============================================================================
# Helper Functions
# ============================================================================

def require_database(f):
    """Decorator to fail fast while the database is down; retries startup init"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        global USE_DATABASE
        if not USE_DATABASE:
            if not check_db_connection():
                return jsonify({'message': 'Database not available'}), 500
            try:
                init_db()
            except Exception as e:
                print(f"⚠ Database initialization failed: {e}")
                return jsonify({'message': 'Database not available'}), 500
            print("✓ Database initialized")
            USE_DATABASE = True
        return f(*args, **kwargs)
    return decorated_function

def resolve_timezone(name=None):
    """Request tz, then FITNESS_TIMEZONE, then the server's local zone"""
    name = (name or DEFAULT_TIMEZONE).strip()
    if not name:
        return tz.tzlocal()
    # gettz opens absolute paths as tzfiles; only zone names are allowed here
    if name.startswith((':', '/', '\\')) or os.path.isabs(name) or '..' in name:
        raise ValidationError(f"Unknown timezone: {name!r}")
    try:
        zone = tz.gettz(name)
    except (ValueError, OSError):
        zone = None
    if zone is None:
        raise ValidationError(f"Unknown timezone: {name!r}")
    return zone

def current_time():
    """Reference instant for aggregation (patched in tests)"""
    return datetime.now(timezone.utc)

# ============================================================================
# API Routes
# ============================================================================

@app.route('/api/health', methods=['GET'])
def health():
    """Database connectivity check"""
    if check_db_connection():
        return jsonify({'status': 'ok', 'database': 'sqlite' if get_db_url().startswith('sqlite') else 'postgres'})
    return jsonify({'status': 'unavailable'}), 503

@app.route('/api/entries', methods=['GET'])
@require_database
def get_entries():
    """Get all entries, newest first"""
    try:
        entries = list_entries()
    except StorageError as e:
        print(f"Error fetching entries: {e}")
        traceback.print_exc()
        return jsonify({'message': 'Error fetching data from database.'}), 500

    return jsonify([entry.to_json() for entry in entries])

@app.route('/api/entries', methods=['POST'])
@require_database
def post_entry():
    """Create an activity or weight entry with a server-assigned timestamp"""
    data = request.get_json(silent=True)
    if data is None:
        return jsonify({'message': 'Invalid JSON in request body.'}), 400

    print(f"Received data: {data}")

    try:
        kind, value, details = validate_entry_payload(data)
    except ValidationError as e:
        return jsonify({'message': str(e)}), 400

    try:
        entry = create_entry(kind, value, details)
    except StorageError as e:
        print(f"Error saving entry: {e}")
        traceback.print_exc()
        return jsonify({'message': 'Error saving data to database.'}), 500

    print(f"Saved entry: {entry.id} ({entry.kind})")
    return jsonify(entry.to_json()), 201

@app.route('/api/summary', methods=['GET'])
@require_database
def get_summary():
    """
    Dashboard values for a month

    Query params:
    - month: 'current' (default) or YYYY-MM
    - tz: IANA timezone name for day/month boundaries
    """
    now = current_time()
    try:
        zone = resolve_timezone(request.args.get('tz'))
        year, month = resolve_month(request.args.get('month'), now, zone)
    except ValidationError as e:
        return jsonify({'message': str(e)}), 400

    log = EntryLog()
    try:
        log.replace(list_entries())
    except StorageError as e:
        print(f"Error building summary: {e}")
        traceback.print_exc()
        return jsonify({'message': 'Error fetching data from database.'}), 500

    summary = log.summarize(now, zone, year=year, month=month, exercises=TRACKED_EXERCISES)
    return jsonify(summary.to_json())

if __name__ == '__main__':
    print("\n" + "="*50)
    print("Fitness Tracker")
    print("="*50)
    print(f"Database: {'postgres' if not get_db_url().startswith('sqlite') else get_db_url()}")
    print(f"Tracked exercises: {', '.join(TRACKED_EXERCISES) or '(none)'}")
    print("="*50 + "\n")
    print(f"Starting server on http://localhost:{PORT}")
    print(f"API endpoints available at http://localhost:{PORT}/api/...")
    print("Press Ctrl+C to stop\n")
    app.run(debug=os.getenv('FLASK_DEBUG') == '1', host='0.0.0.0', port=PORT)
