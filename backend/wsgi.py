"""Development server entry point.

    python backend/wsgi.py            # binds PORT (default 4000)
    gunicorn --chdir backend wsgi:app
"""
from erp import create_app, configure_logging

app = create_app()

if __name__ == '__main__':
    configure_logging(app.config['LOG_LEVEL'])
    port = app.config['PORT']
    app.logger.info('API running on http://localhost:%s', port)
    app.run(host='0.0.0.0', port=port)
