"""Provides application for development purposes."""

import logging

from gatehouse.factory import create_web_app

logger = logging.getLogger(__name__)

app = create_web_app()

if __name__ == '__main__':
    port = app.config['SERVER_PORT']
    logger.info('Server listening on port %s', port)
    app.run(port=port)
