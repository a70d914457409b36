"""
WSGI Entry Point for Production Deployment
Quittances - rent receipt service

This file serves as the entry point for WSGI servers (Gunicorn, uWSGI, etc.)
in production environments.

Usage with Gunicorn:
    gunicorn --config gunicorn_config.py wsgi:app
"""
import os
import sys
from pathlib import Path

# Add the application directory to the Python path
base_dir = Path(__file__).resolve().parent
sys.path.insert(0, str(base_dir))

# Set production environment if not already set
if 'FLASK_ENV' not in os.environ:
    os.environ['FLASK_ENV'] = 'production'

from quittances import create_app, init_db

app = create_app(os.environ['FLASK_ENV'])

# Create tables and seed the landlord and default template if needed
try:
    init_db(app)
except Exception as e:
    app.logger.warning(f"Database initialization skipped or failed: {e}")

# This is the WSGI application object
application = app

if __name__ == "__main__":
    # Development server only; use Gunicorn in production
    app.run(debug=True, host='0.0.0.0', port=5000)
