# main.py - YouTube info and download proxy API
import logging
import os

from werkzeug.middleware.proxy_fix import ProxyFix

from xdown import create_app
from xdown.config import Config

# Configure logging
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)

app = create_app()
app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_host=1)

if __name__ == '__main__':
    port = int(os.getenv('PORT', '3000'))
    logger.info(f"Server running on port {port}")
    app.run(host='0.0.0.0', port=port)
