import eventlet
eventlet.monkey_patch()

import os  # noqa: E402

from coachhub import create_app  # noqa: E402
from coachhub.extensions import socketio  # noqa: E402

app = create_app()

if __name__ == '__main__':
    port = int(os.getenv('PORT', '5000'))
    socketio.run(app, host='0.0.0.0', port=port, debug=app.config.get('DEBUG', False))
