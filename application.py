import os

from mirror_proxy import app

# The WSGI loader looks for 'app' or 'application' in this file
application = app

if __name__ == "__main__":
    app.run(host='0.0.0.0', port=int(os.environ.get('PORT', 8000)))
