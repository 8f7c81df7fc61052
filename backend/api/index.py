"""
Vercel Serverless Entry Point for LaunchPad API
Using Mangum for ASGI to AWS Lambda adapter
"""
from mangum import Mangum

from launchpad.main import app

# Mangum handler for serverless; tables are created by scripts/seed.py
handler = Mangum(app, lifespan="off")
