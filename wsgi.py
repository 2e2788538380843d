"""
WSGI Entry Point for Production Deployment
Yggdrasil gatekeeper

This file serves as the entry point for WSGI servers (Gunicorn, uWSGI, etc.)
in production environments.

Usage with Gunicorn:
    gunicorn --config gunicorn_config.py wsgi:app
"""
import os

# Set production environment if not already set
if 'FLASK_ENV' not in os.environ:
    os.environ['FLASK_ENV'] = 'production'

from gatekeeper import create_app, init_db

# Create the application instance
app = create_app()

# Initialize database and seed the default player if needed
try:
    init_db(app)
except Exception as e:
    app.logger.warning(f"Database initialization skipped or failed: {e}")

# This is the WSGI application object
application = app

if __name__ == "__main__":
    # Local runs only; production goes through Gunicorn
    app.run(debug=True, host='0.0.0.0', port=3000)
