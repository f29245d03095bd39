import os

# Must be set before the app is imported so the engine uses NullPool
os.environ.setdefault("AWS_LAMBDA_FUNCTION_NAME", "lifelink")

from mangum import Mangum  # noqa: E402

from lifelink.main import app  # noqa: E402

handler = Mangum(app, lifespan="off")


def lambda_handler(event, context):
    """AWS Lambda entry point"""
    return handler(event, context)
