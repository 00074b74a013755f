"""Webhook router: validate a provider push notification and deploy it.

Bitbucket's classic POST hook sends the JSON document form-encoded in a
``payload`` field; every other body is parsed as raw JSON.
"""

import asyncio
import json
from typing import Annotated, Any
from urllib.parse import parse_qs

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, status

from deployer.config import settings
from deployer.dependencies import get_command_runner
from deployer.errors import AccessDenied, DeployError, UnknownProviderError, ValidationError
from deployer.services.command_runner import CommandRunner
from deployer.services.deployer import Deployer
from deployer.services.providers import get_provider

logger = structlog.get_logger()

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


def decode_body(body: bytes, content_type: str) -> Any:
    """Return the decoded webhook document, or None for an empty body.

    Raises:
        ValueError: If the body is not valid UTF-8 JSON.
    """
    text = body.decode("utf-8")
    if content_type.startswith("application/x-www-form-urlencoded"):
        text = parse_qs(text).get("payload", [""])[0]
    if not text.strip():
        return None
    return json.loads(text)


@router.post("/{provider_name}")
async def receive_webhook(
    provider_name: str,
    request: Request,
    runner: Annotated[CommandRunner, Depends(get_command_runner)],
) -> dict:
    """Receive a push notification and deploy the selected commit.

    Validation and IP filtering both run before any git command, so a
    rejected request never touches the target directory.
    """
    try:
        provider = get_provider(provider_name)
    except UnknownProviderError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from None

    try:
        data = decode_body(await request.body(), request.headers.get("content-type", ""))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid JSON payload",
        ) from None

    try:
        payload = provider.validate(data)
    except ValidationError as exc:
        logger.info("webhook_rejected", provider=provider.name, reason=exc.reason)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.reason) from None

    deployer = Deployer(
        payload,
        provider,
        options=settings.deploy_options(),
        runner=runner,
        command_timeout=settings.deploy_command_timeout,
    )

    remote_ip = request.client.host if request.client else ""
    try:
        deployer.authorize_request(remote_ip)
    except AccessDenied as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from None

    if settings.deploy_username:
        deployer.login(settings.deploy_username, settings.deploy_password or None)

    try:
        result = await asyncio.to_thread(deployer.deploy)
    except DeployError as exc:
        logger.error(
            "deploy_failed",
            command=exc.command,
            exit_code=exc.exit_code,
            output=exc.output,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Deploy failed",
        ) from None

    return {"status": result.status.value, "commit": result.commit}
