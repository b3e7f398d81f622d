"""
AWS Lambda entry point for the SILK master-agent service.

The Flask app is wrapped with serverless-wsgi. Secrets are copied from
Secrets Manager into the environment before silk_bot is imported, because
the config classes read os.environ at import time.
"""
import json
import os

import boto3
import serverless_wsgi
from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

SERVICE = "silk-master-agent"
# Older secrets carry the gateway key under its previous name
SECRET_ALIASES = {"LOVABLE_API_KEY": "AI_GATEWAY_API_KEY"}

logger = Logger(service=SERVICE, log_level=os.getenv("LOG_LEVEL", "INFO"))
tracer = Tracer(service=SERVICE)
metrics = Metrics(service=SERVICE, namespace="SilkMasterAgent")


def load_secrets_into_env() -> dict:
    secret_id = os.getenv("SECRETS_MANAGER_SECRET", "silk-finance/master-agent")
    region = os.getenv("AWS_REGION", "ap-south-1")

    try:
        raw = boto3.client("secretsmanager", region_name=region).get_secret_value(SecretId=secret_id)
        secret = json.loads(raw["SecretString"])
    except Exception as e:
        # fall back to whatever the function environment already has
        logger.warning("Secrets Manager unavailable", extra={"secret_id": secret_id, "error": str(e)})
        return {}

    loaded = []
    for key, value in secret.items():
        if not value:
            continue
        name = key.upper()
        os.environ[name] = str(value)
        loaded.append(name)
        if name in SECRET_ALIASES:
            os.environ.setdefault(SECRET_ALIASES[name], str(value))

    logger.info("Secrets loaded", extra={"secret_id": secret_id, "keys": loaded})
    return secret


IN_LAMBDA = bool(os.getenv("AWS_LAMBDA_FUNCTION_NAME"))
if IN_LAMBDA:
    load_secrets_into_env()
    if not os.getenv("AI_GATEWAY_API_KEY"):
        logger.warning("AI_GATEWAY_API_KEY missing; master-agent calls will answer 500")

from silk_bot import create_app  # noqa: E402

app = create_app("lambda" if IN_LAMBDA else "production")


def _normalize_event(event: dict) -> dict:
    # HTTP API v2 may omit these or send null
    if event.get("headers") is None:
        event["headers"] = {}
    event.setdefault("queryStringParameters", None)
    return event


def _record_status(status_code: int) -> None:
    if status_code == 429:
        metrics.add_metric(name="UpstreamRateLimited", unit="Count", value=1)
    elif status_code == 402:
        metrics.add_metric(name="UpstreamQuotaExceeded", unit="Count", value=1)
    if status_code >= 400:
        metrics.add_metric(name="ErrorCount", unit="Count", value=1)


@logger.inject_lambda_context(log_event=False)
@tracer.capture_lambda_handler
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: dict, context: LambdaContext) -> dict:
    """API Gateway HTTP API event in, API Gateway response out.

    serverless-wsgi buffers the event-stream body, so clients receive the
    whole SSE transcript in one response here.
    """
    http = event.get("requestContext", {}).get("http", {})
    logger.append_keys(request_id=context.aws_request_id, path=http.get("path", "unknown"))
    metrics.add_metric(name="RequestCount", unit="Count", value=1)

    try:
        response = serverless_wsgi.handle_request(app, _normalize_event(event), context)
    except Exception:
        logger.exception("Unhandled error in WSGI adapter")
        metrics.add_metric(name="ErrorCount", unit="Count", value=1)
        return {
            "statusCode": 500,
            "headers": {"Content-Type": "application/json"},
            "body": json.dumps({"error": "Internal server error"}),
        }

    status_code = response.get("statusCode", 500)
    logger.info("Request handled", extra={"method": http.get("method", "unknown"), "status_code": status_code})
    _record_status(status_code)
    return response
