from .app import create_app, dumps, ports_payload
