"""
Vercel Serverless Entry Point

Vercel calls this file for every request to /api/* and expects the WSGI
application to be exported as 'app'. Routing is handled by the blueprints
in forecast/api/.
"""

from forecast import create_app

app = create_app()
